import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response

from freshcrawl.services.freshness_service import FreshnessCache


router = APIRouter(tags=["freshness"])


def get_freshness_cache(request: Request) -> FreshnessCache:
    return request.app.state.freshness_cache


def get_password(request: Request) -> str:
    return request.app.state.settings.password


@router.api_route("/", methods=["GET", "POST", "HEAD"])
def ask(
    password: Optional[str] = Header(None, alias="Password"),
    url: Optional[str] = Header(None, alias="Url"),
    expected: str = Depends(get_password),
    cache: FreshnessCache = Depends(get_freshness_cache),
):
    """Decide whether the URL in the ``Url`` header should be fetched.

    200: new or stale, fetch it. 304: seen recently, skip. 400: bad credential or no URL.
    """
    if password is None or not hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8")):
        return Response(status_code=400)
    if not url:
        return Response(status_code=400)

    decision = cache.check(url)
    return Response(status_code=200 if decision.should_fetch else 304)
