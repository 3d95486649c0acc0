"""Waveform preamble (calibration record) parsing for ScopeCapture."""

from __future__ import annotations

import logging
import math
from dataclasses import astuple, dataclass, fields

logger = logging.getLogger(__name__)

PREAMBLE_FIELD_COUNT = 10

# Used when a field was never reported by the instrument
DEFAULT_Y_INCREMENT = 0.001
DEFAULT_Y_ORIGIN = 0.0
DEFAULT_Y_REFERENCE = 127.0
DEFAULT_X_INCREMENT = 1e-6
DEFAULT_X_ORIGIN = 0.0

# Human-readable meaning of each preamble position, in order
PREAMBLE_FIELD_DESCRIPTIONS = (
    "Format (0=BYTE, 1=WORD, 2=ASC)",
    "Type (0=NORMal, 1=MAXimum, 2=RAW)",
    "Points (number of data points)",
    "Count (always 1 in NORMal mode)",
    "XIncrement (time between points)",
    "XOrigin (time of first point)",
    "XReference (reference point)",
    "YIncrement (voltage per ADC count)",
    "YOrigin (voltage at ADC=0)",
    "YReference (ADC reference point)",
)


@dataclass(frozen=True)
class CalibrationRecord:
    """The ten values of a ``:WAVeform:PREamble?`` reply.

    A field is ``None`` when the instrument did not report it at all. Numeric
    defaults for unknown fields are applied only when converting samples.
    """

    format: float | None = None
    acq_type: float | None = None
    points: float | None = None
    count: float | None = None
    x_increment: float | None = None
    x_origin: float | None = None
    x_reference: float | None = None
    y_increment: float | None = None
    y_origin: float | None = None
    y_reference: float | None = None

    @classmethod
    def from_values(cls, values: list[float | None]) -> CalibrationRecord:
        """Build a record from up to ten positional values."""
        padded = list(values[:PREAMBLE_FIELD_COUNT])
        padded += [None] * (PREAMBLE_FIELD_COUNT - len(padded))
        return cls(*padded)

    @classmethod
    def zeros(cls) -> CalibrationRecord:
        return cls.from_values([0.0] * PREAMBLE_FIELD_COUNT)

    def values(self) -> tuple[float | None, ...]:
        return astuple(self)

    def known_values(self) -> list[float]:
        """Return the reported fields in order, stopping at the first unknown one."""
        known = []
        for value in self.values():
            if value is None:
                break
            known.append(value)
        return known

    @property
    def is_complete(self) -> bool:
        return all(value is not None for value in self.values())

    @staticmethod
    def field_names() -> list[str]:
        return [f.name for f in fields(CalibrationRecord)]


def _parse_token(token: str) -> float:
    try:
        value = float(token.strip())
    except ValueError:
        logger.debug("Unparsable preamble token %r, using 0", token)
        return 0.0
    if not math.isfinite(value):
        logger.debug("Non-finite preamble token %r, using 0", token)
        return 0.0
    return value


def parse_preamble(response: str | None) -> CalibrationRecord:
    """Parse a comma-separated preamble reply into a CalibrationRecord.

    Up to ten tokens are read. A token that is not a finite number becomes 0
    for that position only. Positions beyond the tokens supplied are left
    unknown. An empty or missing reply yields a record of all zeros. This
    function never raises.

    Args:
        response: Text returned by ``:WAVeform:PREamble?``

    Returns:
        CalibrationRecord with the parsed values
    """
    if response is None or not response.strip():
        return CalibrationRecord.zeros()

    tokens = response.strip().split(",")[:PREAMBLE_FIELD_COUNT]
    record = CalibrationRecord.from_values([_parse_token(t) for t in tokens])
    logger.debug("Parsed %d preamble parameters", len(tokens))
    return record
