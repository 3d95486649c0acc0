"""Tests for TMC binary block decoding."""

import pytest

from scopecapture.block import decode_block

from conftest import make_block


def test_decode_block_returns_payload() -> None:
    """Verify a nine-digit header is stripped and the payload returned."""
    data = b"#9000000005" + b"\x01\x02\x03\x04\x05"

    result = decode_block(data)

    assert result.payload == b"\x01\x02\x03\x04\x05"
    assert result.error is None
    assert result


def test_decode_block_ignores_trailing_bytes() -> None:
    """Verify bytes after the declared payload (e.g. newline) are dropped."""
    result = decode_block(make_block(b"ABCDEFGH", trailer=b"\n\n"))

    assert result.payload == b"ABCDEFGH"


def test_decode_block_short_length_field() -> None:
    """Verify a single-digit length field is supported."""
    result = decode_block(b"#18" + bytes(range(8)))

    assert result.payload == bytes(range(8))


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"#9000",
        b"#12345678",
        None,
    ],
)
def test_decode_block_too_short(data: bytes | None) -> None:
    """Verify inputs shorter than 10 bytes give an empty payload."""
    result = decode_block(data)

    assert result.payload == b""
    assert result.error is not None
    assert not result


def test_decode_block_missing_hash() -> None:
    """Verify a block without the leading '#' is rejected."""
    result = decode_block(b"X9000000005hello")

    assert result.payload == b""
    assert "#" in (result.error or "")


@pytest.mark.parametrize("digit", [b"0", b"A", b" ", b"\x00"])
def test_decode_block_invalid_digit_count(digit: bytes) -> None:
    """Verify a length digit outside 1-9 is rejected without raising."""
    result = decode_block(b"#" + digit + b"000000005hello")

    assert result.payload == b""
    assert result.error is not None


def test_decode_block_non_numeric_length() -> None:
    """Verify a length field with non-digit characters is rejected."""
    result = decode_block(b"#900000x005hello")

    assert result.payload == b""
    assert result.error is not None


def test_decode_block_truncated_payload() -> None:
    """Verify a block shorter than its declared length yields what arrived."""
    result = decode_block(b"#9000000100" + b"\x10" * 20)

    assert result.payload == b"\x10" * 20


def test_decode_block_accepts_bytearray() -> None:
    """Verify bytearray input is handled like bytes."""
    result = decode_block(bytearray(make_block(b"\x7f\x80")))

    assert result.payload == b"\x7f\x80"
    assert isinstance(result.payload, bytes)
