import math

from app.utils import looks_playable, parse_leading_float, parse_leading_int, split_tokens, text_or_none


def test_looks_playable():
    assert looks_playable("https://cdn.example.com/video")
    assert looks_playable("HTTP://CDN.EXAMPLE.COM/A")
    assert looks_playable("cdn.example.com/live/index.m3u8")
    assert looks_playable("/files/movie.MP4")
    assert not looks_playable("ftp://example.com/file")
    assert not looks_playable("")
    assert not looks_playable(None)


def test_split_tokens():
    assert split_tokens("a, b，c、d\te") == ["a", "b", "c", "d", "e"]
    assert split_tokens(None) == []
    assert split_tokens(" , ") == []


def test_parse_leading_numbers():
    assert parse_leading_int("2023年") == 2023
    assert parse_leading_int(7.9) == 7
    assert parse_leading_int("abc") is None
    assert parse_leading_int(True) is None
    assert parse_leading_float("8.5分") == 8.5
    assert parse_leading_float(".5") == 0.5
    assert parse_leading_float(math.inf) is None
    assert parse_leading_float("") is None


def test_text_or_none():
    assert text_or_none("  hi ") == "hi"
    assert text_or_none(42) == "42"
    assert text_or_none("   ") is None
    assert text_or_none(None) is None


def test_parse_leading_int_rejects_oversized_digit_runs():
    assert parse_leading_int("9" * 5000) is None
    assert parse_leading_int("9" * 5000 + "年") is None
