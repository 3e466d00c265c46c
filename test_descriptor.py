#!/usr/bin/env python3
"""Test stream descriptor tokenizing and parsing."""

import sys

from drmplay.descriptor import EmptyInputError, derive_title, parse, tokenize
from drmplay.models import DrmType, StreamConfig


FULL_DESCRIPTOR = (
    "https://cdn.example/live.m3u8"
    "|User-Agent=Foo%20Bar"
    "|drmScheme=widevine"
    "|drmLicense=https://lic.example/w"
)


def test_full_descriptor():
    config = parse(FULL_DESCRIPTOR)

    assert config.url == "https://cdn.example/live.m3u8"
    assert config.headers == {"User-Agent": "Foo Bar"}
    assert config.drm_type is DrmType.WIDEVINE
    assert config.drm_license_uri == "https://lic.example/w"
    assert config.drm_enabled
    assert str(config.drm_type.system_id) == "edef8ba9-79d6-4ace-a3c8-27dcd51d21ed"
    assert config.user_agent == "Foo Bar"
    print("✓ Full descriptor parsed")


def test_plain_url_is_kept_verbatim():
    for raw in (
        "https://cdn.example/video.mp4",
        "https://cdn.example/a%20b/clip.mp4?token=x=y",
        "rtmp://origin.example/app/stream",
        "not a url at all",
    ):
        config = parse(raw)
        assert config.url == raw
        assert config.headers == {}
        assert config.drm_type is DrmType.NONE
        assert config.drm_license_uri == ""
    print("✓ Descriptors without delimiter keep the URL verbatim")


def test_empty_input():
    for raw in ("", "   ", "\t\n", None, "|Referer=https://site.example/", "  |drmType=widevine"):
        try:
            parse(raw)
        except EmptyInputError:
            continue
        raise AssertionError(f"parse({raw!r}) did not raise EmptyInputError")
    print("✓ Empty input rejected")


def test_tokenize_splits_on_first_equals_and_skips_noise():
    tokens = list(tokenize("https://cdn.example/x.mpd|garbage||Cookie=a=1; b=2|=orphan|X-Token=abc"))

    assert tokens[0].key is None
    assert tokens[0].value == "https://cdn.example/x.mpd"
    assert [(t.key, t.value) for t in tokens[1:]] == [
        ("Cookie", "a=1; b=2"),
        ("X-Token", "abc"),
    ]
    print("✓ Tokenizer splits on first '=' and skips malformed segments")


def test_tokenize_is_lazy():
    tokens = tokenize("https://cdn.example/x.mpd|A=1")
    assert next(tokens).value == "https://cdn.example/x.mpd"
    assert next(tokens).value == "1"
    assert next(tokens, None) is None
    print("✓ Tokenizer yields tokens lazily")


def test_undecodable_values_stay_raw():
    config = parse("https://cdn.example/x.mpd|A=100%|B=%zz|C=%FF%FE|D=a+b|E=%E2%9C%93")

    assert config.headers == {
        "A": "100%",
        "B": "%zz",
        "C": "%FF%FE",
        "D": "a+b",
        "E": "✓",
    }
    print("✓ Undecodable percent sequences keep the raw value")


def test_drm_keys_are_case_insensitive_aliases():
    expected = parse("https://cdn.example/x.mpd|drmScheme=playready|drmLicense=https://lic.example/p")

    for key in ("drmscheme", "DRMSCHEME", "drmType", "DrmType", "drmtype"):
        for value in ("playready", "PlayReady", "PLAYREADY"):
            config = parse(f"https://cdn.example/x.mpd|{key}={value}|DRMLICENSE=https://lic.example/p")
            assert config == expected
            assert config.drm_type is DrmType.PLAYREADY
    print("✓ DRM keys and scheme values are case-insensitive")


def test_unknown_drm_scheme_is_inert():
    config = parse("https://cdn.example/x.mpd|drmScheme=fairplay|drmLicense=https://lic.example/f")

    assert config.drm_type is DrmType.UNKNOWN
    assert config.drm_license_uri == "https://lic.example/f"
    assert config.drm_type.system_id is None
    assert not config.drm_enabled
    assert config.headers == {}
    print("✓ Unknown DRM scheme parsed as inert UNKNOWN")


def test_drm_needs_scheme_and_license():
    cases = [
        "https://cdn.example/x.mpd|drmScheme=clearkey",
        "https://cdn.example/x.mpd|drmLicense=https://lic.example/c",
        "https://cdn.example/x.mpd|drmScheme=none|drmLicense=https://lic.example/c",
        "https://cdn.example/x.mpd|drmScheme=widevine|drmLicense=",
        "https://cdn.example/x.mpd|drmType=fairplay",
    ]
    for raw in cases:
        config = parse(raw)
        assert config.drm_type is DrmType.NONE, raw
        assert config.drm_license_uri == "", raw

    for raw in (FULL_DESCRIPTOR, "https://cdn.example/x.mpd|drmType=bogus|drmLicense=https://l"):
        config = parse(raw)
        assert config.drm_type is not DrmType.NONE
        assert config.drm_license_uri != ""
    print("✓ DRM scheme and license are set together or not at all")


def test_last_drm_value_wins():
    config = parse(
        "https://cdn.example/x.mpd|drmScheme=widevine|drmType=clearkey"
        "|drmLicense=https://lic.example/1|drmLicense=https://lic.example/2"
    )
    assert config.drm_type is DrmType.CLEARKEY
    assert config.drm_license_uri == "https://lic.example/2"
    print("✓ Later DRM fields override earlier ones")


def test_duplicate_headers_last_wins():
    config = parse("https://cdn.example/x.mpd|Referer=https://a.example/|X-Id=1|referer=https://b.example/")

    assert config.headers == {"X-Id": "1", "referer": "https://b.example/"}
    assert config.header("REFERER") == "https://b.example/"
    assert config.header("Origin") is None
    print("✓ Duplicate header keys keep the last occurrence")


def test_parse_is_idempotent():
    first = parse(FULL_DESCRIPTOR)
    second = parse(FULL_DESCRIPTOR)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert isinstance(first, StreamConfig)
    print("✓ Parsing the same descriptor twice gives identical configs")


def test_config_is_read_only():
    config = parse("https://cdn.example/a.mp4|A=1")

    try:
        config.headers["B"] = "2"
    except TypeError:
        pass
    else:
        raise AssertionError("headers accepted a new key")

    assert dict(config.headers) == {"A": "1"}
    assert hash(config) == hash(parse("https://cdn.example/a.mp4|A=1"))

    source = {"Referer": "https://site.example/"}
    built = StreamConfig(url="https://cdn.example/a.mp4", headers=source)
    source["Referer"] = "changed"
    assert built.headers == {"Referer": "https://site.example/"}
    print("✓ StreamConfig headers are read-only")


def test_to_dict():
    payload = parse(FULL_DESCRIPTOR).to_dict()
    assert payload == {
        "url": "https://cdn.example/live.m3u8",
        "headers": {"User-Agent": "Foo Bar"},
        "drm_type": "widevine",
        "drm_license_uri": "https://lic.example/w",
        "drm_system_id": "edef8ba9-79d6-4ace-a3c8-27dcd51d21ed",
    }

    plain = parse("https://cdn.example/video.mp4").to_dict()
    assert plain["drm_type"] == "none"
    assert plain["drm_license_uri"] is None
    assert plain["drm_system_id"] is None
    print("✓ StreamConfig serializes to a plain dict")


def test_derive_title():
    assert derive_title("https://cdn.example/video.mp4") == "video.mp4"
    assert derive_title("https://cdn.example/shows/My%20Show%20E01.mkv") == "My Show E01.mkv"
    assert derive_title("https://cdn.example/live.m3u8") == "live.m3u8"

    for url in (
        "https://cdn.example/video.mp4?token=abc",
        "https://cdn.example/video.mp4?",
        "https://cdn.example/playlist?id=7",
        "https://cdn.example/blob.bin",
        "https://cdn.example/BLOB.BIN",
        "https://cdn.example/",
        "https://cdn.example",
        "https://cdn.example/channel/42",
        "https://cdn.example/odd%3Fname.mp4",
        "http://[::1",
    ):
        assert derive_title(url) == "Live Stream", url
    print("✓ Titles derived from the final path segment")


if __name__ == "__main__":
    test_full_descriptor()
    test_plain_url_is_kept_verbatim()
    test_empty_input()
    test_tokenize_splits_on_first_equals_and_skips_noise()
    test_tokenize_is_lazy()
    test_undecodable_values_stay_raw()
    test_drm_keys_are_case_insensitive_aliases()
    test_unknown_drm_scheme_is_inert()
    test_drm_needs_scheme_and_license()
    test_last_drm_value_wins()
    test_duplicate_headers_last_wins()
    test_parse_is_idempotent()
    test_config_is_read_only()
    test_to_dict()
    test_derive_title()
    sys.exit(0)
