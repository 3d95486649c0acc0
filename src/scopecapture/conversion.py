"""Raw code to voltage/time conversion for ScopeCapture."""

from __future__ import annotations

from collections.abc import Sequence

from scopecapture.calibration import (
    DEFAULT_X_INCREMENT,
    DEFAULT_X_ORIGIN,
    DEFAULT_Y_INCREMENT,
    DEFAULT_Y_ORIGIN,
    DEFAULT_Y_REFERENCE,
    CalibrationRecord,
)


def _field(value: float | None, default: float) -> float:
    return default if value is None else value


def vertical_scale(calibration: CalibrationRecord | None) -> tuple[float, float, float]:
    """Return (y_increment, y_origin, y_reference) with defaults for unknown fields."""
    if calibration is None:
        return DEFAULT_Y_INCREMENT, DEFAULT_Y_ORIGIN, DEFAULT_Y_REFERENCE
    return (
        _field(calibration.y_increment, DEFAULT_Y_INCREMENT),
        _field(calibration.y_origin, DEFAULT_Y_ORIGIN),
        _field(calibration.y_reference, DEFAULT_Y_REFERENCE),
    )


def horizontal_scale(calibration: CalibrationRecord | None) -> tuple[float, float]:
    """Return (x_increment, x_origin) with defaults for unknown fields."""
    if calibration is None:
        return DEFAULT_X_INCREMENT, DEFAULT_X_ORIGIN
    return (
        _field(calibration.x_increment, DEFAULT_X_INCREMENT),
        _field(calibration.x_origin, DEFAULT_X_ORIGIN),
    )


def convert_to_voltages(
    raw_codes: Sequence[int], calibration: CalibrationRecord | None
) -> list[float]:
    """Convert raw digitizer codes to volts.

    voltage = (code - y_reference) * y_increment + y_origin
    """
    y_increment, y_origin, y_reference = vertical_scale(calibration)
    return [(code - y_reference) * y_increment + y_origin for code in raw_codes]


def generate_time_values(
    point_count: int, calibration: CalibrationRecord | None
) -> list[float]:
    """Generate the sample times: time = x_origin + index * x_increment."""
    x_increment, x_origin = horizontal_scale(calibration)
    return [x_origin + i * x_increment for i in range(point_count)]


def convert_samples(
    raw_codes: Sequence[int], calibration: CalibrationRecord | None
) -> tuple[list[float], list[float]]:
    """Convert raw codes into parallel voltage and time sequences.

    Args:
        raw_codes: Unscaled ADC samples
        calibration: Preamble for the capture, or None if not available

    Returns:
        Tuple of (voltages, times), both the same length as raw_codes
    """
    voltages = convert_to_voltages(raw_codes, calibration)
    times = generate_time_values(len(voltages), calibration)
    return voltages, times
