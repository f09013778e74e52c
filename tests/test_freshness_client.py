import httpx

from freshcrawl.services.freshness_client import FreshnessClient


def _client(handler):
    return FreshnessClient(
        "http://dispatcher.local/",
        "secret",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_sends_credential_and_url_headers():
    seen = {}

    def handler(req):
        seen["password"] = req.headers.get("Password")
        seen["url"] = req.headers.get("Url")
        return httpx.Response(200)

    assert _client(handler).should_fetch("http://example.com/x") is True
    assert seen == {"password": "secret", "url": "http://example.com/x"}


def test_not_modified_means_skip():
    assert _client(lambda req: httpx.Response(304)).should_fetch("http://example.com/") is False


def test_rejection_means_skip():
    assert _client(lambda req: httpx.Response(400)).should_fetch("http://example.com/") is False


def test_transport_error_means_skip():
    def handler(req):
        raise httpx.ConnectError("down", request=req)

    assert _client(handler).should_fetch("http://example.com/") is False
