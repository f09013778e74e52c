from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Optional

# Stored value layout (8 bytes, big-endian):
#   [0:4)  last_seen & 0xFFFFFF00 | weight
#   [4:8)  hits
_RECORD = struct.Struct(">II")
RECORD_SIZE = _RECORD.size

TIME_MASK = 0xFFFFFF00
WEIGHT_MASK = 0x000000FF
UINT32_MAX = 0xFFFFFFFF


class Decision(str, enum.Enum):
    NEW = "new"
    FRESH = "fresh"
    STALE = "stale"

    @property
    def should_fetch(self) -> bool:
        return self is not Decision.FRESH


@dataclass
class FreshnessRecord:
    last_seen: int
    weight: int
    hits: int

    def pack(self) -> bytes:
        head = (self.last_seen & TIME_MASK) | (self.weight & WEIGHT_MASK)
        return _RECORD.pack(head, self.hits & UINT32_MAX)

    @classmethod
    def unpack(cls, value: Optional[bytes]) -> Optional["FreshnessRecord"]:
        """Decode a stored value; anything that isn't exactly 8 bytes is no record."""
        if value is None or len(value) != RECORD_SIZE:
            return None
        head, hits = _RECORD.unpack(bytes(value))
        return cls(last_seen=head & TIME_MASK, weight=head & WEIGHT_MASK, hits=hits)
