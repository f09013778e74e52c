"""Web crawler core with a URL freshness service."""
