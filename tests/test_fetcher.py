import httpx

from freshcrawl.services.crawl.fetcher import PageFetcher, looks_binary


def _fetcher(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PageFetcher(client=client, **kwargs)


def test_fetch_returns_body():
    fetcher = _fetcher(lambda req: httpx.Response(200, content=b"<p>hello</p>"))
    assert fetcher.fetch("http://example.com/") == b"<p>hello</p>"


def test_fetch_caps_response_size():
    fetcher = _fetcher(lambda req: httpx.Response(200, content=b"a" * 100), max_response_size=10)
    assert fetcher.fetch("http://example.com/") == b"a" * 10


def test_empty_body_is_dropped():
    fetcher = _fetcher(lambda req: httpx.Response(200, content=b""))
    assert fetcher.fetch("http://example.com/") is None


def test_binary_body_is_dropped():
    fetcher = _fetcher(lambda req: httpx.Response(200, content=b"\xff\xfe" * 50))
    assert fetcher.fetch("http://example.com/logo.jpg") is None


def test_transport_error_is_dropped():
    def handler(req):
        raise httpx.ConnectError("refused", request=req)

    fetcher = _fetcher(handler)
    assert fetcher.fetch("http://example.com/") is None


def test_looks_binary_threshold():
    # 5 high bytes in 100 is exactly 1/20: not binary
    assert not looks_binary(b"\xf5" * 5 + b"a" * 95)
    assert looks_binary(b"\xf5" * 6 + b"a" * 94)
    # UTF-8 CJK text never uses lead bytes above 0xF0
    assert not looks_binary("中文日本語".encode("utf-8"))
