"""TMC binary block decoding for ScopeCapture."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Smallest response that can carry a header and at least some payload
MIN_BLOCK_LENGTH = 10


@dataclass(frozen=True)
class BlockDecodeResult:
    """Payload extracted from a binary block, or the reason it could not be."""

    payload: bytes
    error: str | None = None

    def __bool__(self) -> bool:
        return len(self.payload) > 0


def _failure(reason: str) -> BlockDecodeResult:
    logger.warning("Binary block decode failed: %s", reason)
    return BlockDecodeResult(payload=b"", error=reason)


def decode_block(data: bytes | bytearray | None) -> BlockDecodeResult:
    """Strip the length-prefixed header from an instrument binary response.

    The block looks like ``#<d><L...><payload>`` where ``d`` is a single ASCII
    digit giving the number of digits in the decimal length field ``L``.
    Bytes after the declared payload (usually a terminating newline) are
    ignored.

    Malformed input never raises; the result carries an empty payload and a
    human-readable reason instead.

    Args:
        data: Raw bytes returned by a binary query, header still attached

    Returns:
        BlockDecodeResult with the payload bytes
    """
    if data is None or len(data) < MIN_BLOCK_LENGTH:
        size = 0 if data is None else len(data)
        return _failure(f"response too short ({size} bytes)")

    if data[0] != ord("#"):
        return _failure("block does not start with '#'")

    digit = data[1]
    if not ord("1") <= digit <= ord("9"):
        return _failure(f"invalid length digit count {chr(digit)!r}")
    length_digits = digit - ord("0")

    header_length = 2 + length_digits
    if len(data) < header_length:
        return _failure(f"response too short for {header_length}-byte header")

    length_field = bytes(data[2:header_length])
    if not length_field.isdigit():
        return _failure(f"length field {length_field!r} is not a decimal number")
    payload_length = int(length_field)

    available = len(data) - header_length
    if payload_length > available:
        logger.warning(
            "Truncated block: header declares %d bytes, %d received",
            payload_length,
            available,
        )
        payload_length = available

    payload = bytes(data[header_length : header_length + payload_length])
    logger.debug("Block header %d bytes, payload %d bytes", header_length, len(payload))
    return BlockDecodeResult(payload=payload)
