import pytest

from renderer.app.errors import InvalidEscape
from renderer.app.selection.pointer import (
    Index,
    Key,
    escape_pointer_token,
    format_pointer,
    parse_pointer,
)


def test_root_pointer_addresses_whole_document():
    assert parse_pointer("/") == []
    assert parse_pointer("") == []


def test_plain_pointer_splits_on_slash_and_drops_leading_segment():
    assert parse_pointer("/credentialSubject/name") == [
        Key(value="credentialSubject"),
        Key(value="name"),
    ]


def test_numeric_segments_are_indices():
    """
    Purely numeric segments address sequence elements, leading zeros
    included. Anything else is a key.
    """
    assert parse_pointer("/items/0/2") == [
        Key(value="items"),
        Index(value=0),
        Index(value=2),
    ]
    assert parse_pointer("/01") == [Index(value=1)]
    assert parse_pointer("/-1") == [Key(value="-1")]
    assert parse_pointer("/1a") == [Key(value="1a")]
    assert parse_pointer("/1.5") == [Key(value="1.5")]


def test_empty_segments_are_keys():
    assert parse_pointer("/a//b") == [Key(value="a"), Key(value=""), Key(value="b")]
    assert parse_pointer("/a/") == [Key(value="a"), Key(value="")]


def test_escapes_decode_to_keys():
    assert parse_pointer("/a~1b/c~0d") == [Key(value="a/b"), Key(value="c~d")]


def test_escaped_numeric_segment_stays_a_key():
    assert parse_pointer("/~01") == [Key(value="~1")]


def test_escape_decoding_is_single_pass():
    # "~01" is "~" followed by "1", never "/"
    assert parse_pointer("/~01b") == [Key(value="~1b")]
    assert parse_pointer("/~10") == [Key(value="/0")]


@pytest.mark.parametrize("pointer", ["/a~", "/a~2", "/~x/b", "/ok/bad~"])
def test_invalid_escape_is_rejected(pointer):
    with pytest.raises(InvalidEscape) as exc_info:
        parse_pointer(pointer)

    assert exc_info.value.pointer == pointer
    assert exc_info.value.sequence.startswith("~")


def test_invalid_escape_is_a_value_error():
    with pytest.raises(ValueError):
        parse_pointer("/a~9")


def test_escape_pointer_token():
    assert escape_pointer_token("a/b~c") == "a~1b~0c"


def test_format_pointer_accepts_segments_and_raw_tokens():
    assert format_pointer([]) == "/"
    assert format_pointer(["a/b", 0, Key(value="c~d"), Index(value=3)]) == (
        "/a~1b/0/c~0d/3"
    )
    assert parse_pointer(format_pointer(["a/b", "c~d"])) == [
        Key(value="a/b"),
        Key(value="c~d"),
    ]


def test_segments_are_immutable():
    segment = Key(value="name")

    with pytest.raises(Exception):
        segment.value = "other"
