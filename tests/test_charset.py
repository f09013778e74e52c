import pytest
from selectolax.parser import HTMLParser

from freshcrawl.services.crawl.charset import (
    charset_from_content,
    codec_for,
    detect_and_decode,
    detect_charset,
)


def _page(meta: str, body: str) -> str:
    return f"<html><head>{meta}<title>t</title></head><body><p id=\"c\">{body}</p></body></html>"


def test_no_hint_is_byte_identical_pass_through():
    raw = _page("", "plain text").encode("utf-8")
    decoded = detect_and_decode(raw)
    assert decoded.charset == "utf-8"
    assert decoded.body is raw


def test_meta_content_quoted_gbk_is_transcoded():
    meta = '<meta http-equiv="Content-Type" content=\'text/html; charset="GBK"\'>'
    raw = _page(meta, "中文内容测试").encode("gbk")
    decoded = detect_and_decode(raw)
    assert decoded.charset == "gbk"
    text = decoded.body.decode("utf-8")
    assert "中文内容测试" in text
    # re-parsing the transcoded bytes yields the right characters
    assert HTMLParser(decoded.text()).css_first("#c").text() == "中文内容测试"


def test_meta_content_bare_charset():
    meta = '<meta http-equiv="Content-Type" content="text/html; charset=big5">'
    raw = _page(meta, "繁體中文").encode("big5")
    decoded = detect_and_decode(raw)
    assert decoded.charset == "big5"
    assert "繁體中文" in decoded.body.decode("utf-8")


def test_meta_charset_attribute_wins():
    meta = '<meta charset="Shift_JIS"><meta http-equiv="Content-Type" content="text/html; charset=euc-kr">'
    raw = _page(meta, "日本語のテキスト").encode("shift_jis")
    decoded = detect_and_decode(raw)
    assert decoded.charset == "shift_jis"
    assert "日本語のテキスト" in decoded.body.decode("utf-8")


def test_euc_kr_page():
    meta = '<meta charset="euc-kr">'
    raw = _page(meta, "한국어").encode("euc_kr")
    assert "한국어" in detect_and_decode(raw).body.decode("utf-8")


def test_iso_2022_jp_page():
    meta = '<meta charset="ISO-2022-JP">'
    raw = _page(meta, "こんにちは").encode("iso2022_jp")
    assert "こんにちは" in detect_and_decode(raw).body.decode("utf-8")


def test_unrecognised_label_is_a_no_op():
    raw = _page('<meta charset="windows-1252">', "caf\xe9").encode("cp1252")
    decoded = detect_and_decode(raw)
    assert decoded.charset == "windows-1252"
    assert decoded.body is raw


def test_explicit_utf8_is_a_no_op():
    raw = _page('<meta charset="UTF-8">', "中文").encode("utf-8")
    decoded = detect_and_decode(raw)
    assert decoded.charset == "utf-8"
    assert decoded.body is raw


def test_only_first_meta_content_is_consulted():
    meta = '<meta name="description" content="about us"><meta http-equiv="Content-Type" content="text/html; charset=gbk">'
    raw = _page(meta, "x").encode("utf-8")
    assert detect_charset(raw) == "utf-8"


@pytest.mark.parametrize(
    "content,expected",
    [
        ('text/html; charset="gb2312"', "gb2312"),
        ("text/html; charset=EUC-JP", "euc-jp"),
        ("text/html", None),
    ],
)
def test_charset_from_content(content, expected):
    assert charset_from_content(content) == expected


def test_codec_aliases_are_case_insensitive():
    assert codec_for("X-SJIS") == "shift_jis"
    assert codec_for("Shift-JIS") == "shift_jis"
    assert codec_for("GB2312") == "gb18030"
    assert codec_for("x_euc") == "euc_jp"
    assert codec_for("CSISO2022JP") == "iso2022_jp"
    assert codec_for("utf-8") is None
    assert codec_for(None) is None
