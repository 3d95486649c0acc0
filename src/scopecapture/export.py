"""Waveform export formats for ScopeCapture."""

from __future__ import annotations

import json
import logging
import math
import os
import struct
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import IO, Any

from scopecapture.calibration import (
    PREAMBLE_FIELD_COUNT,
    PREAMBLE_FIELD_DESCRIPTIONS,
    CalibrationRecord,
)
from scopecapture.conversion import vertical_scale
from scopecapture.waveform_data import CapturedWaveform

logger = logging.getLogger(__name__)

DEFAULT_SOFTWARE_LABEL = "ScopeCapture"

RAW_SIGNATURE = b"RIGOL_RAW_V1"

# Elements per line in MATLAB vector literals
MATLAB_ELEMENTS_PER_LINE = 8

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class ExportFormat(Enum):
    """Supported export formats."""

    CSV = "csv"
    JSON = "json"
    MATLAB = "matlab"
    RAW_BINARY = "raw_binary"
    WITH_PREAMBLE = "with_preamble"

    @property
    def file_extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @classmethod
    def parse(cls, value: ExportFormat | str) -> ExportFormat:
        """Resolve a format from an enum member, name, or short alias.

        Raises:
            ValueError: If the name is not a known format
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().lstrip(".")
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"Unknown export format: {value}") from None


_EXTENSIONS = {
    ExportFormat.CSV: ".csv",
    ExportFormat.JSON: ".json",
    ExportFormat.MATLAB: ".m",
    ExportFormat.RAW_BINARY: ".bin",
    ExportFormat.WITH_PREAMBLE: ".csv",
}

_DESCRIPTIONS = {
    ExportFormat.CSV: "Comma-separated values (Excel compatible)",
    ExportFormat.JSON: "JavaScript Object Notation (web compatible)",
    ExportFormat.MATLAB: "MATLAB script file (ready to plot)",
    ExportFormat.RAW_BINARY: "Raw binary data (compact format)",
    ExportFormat.WITH_PREAMBLE: "CSV with complete oscilloscope parameters",
}

_ALIASES = {fmt.value: fmt for fmt in ExportFormat} | {
    "m": ExportFormat.MATLAB,
    "raw": ExportFormat.RAW_BINARY,
    "bin": ExportFormat.RAW_BINARY,
    "preamble": ExportFormat.WITH_PREAMBLE,
}


def _new_file_mode(target: Path) -> int:
    """Return the mode a plain open() would give target."""
    try:
        return target.stat().st_mode & 0o7777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


@contextmanager
def _atomic_open(path: str | Path, mode: str = "w") -> Iterator[IO[Any]]:
    """Open a temporary file next to path and move it into place on success.

    mkstemp creates the file owner-only, so the usual permissions are
    restored before the move.
    """
    target = Path(path)
    binary = "b" in mode
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        if binary:
            f = os.fdopen(fd, mode)
        else:
            f = os.fdopen(fd, mode, encoding="utf-8", newline="\n")
        with f:
            yield f
        os.chmod(tmp_name, _new_file_mode(target))
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _fmt_time(value: float) -> str:
    return f"{value:.6e}"


def _fmt_voltage(value: float) -> str:
    return f"{value:.6f}"


def _fmt_timestamp(value: datetime) -> str:
    return f"{value:%Y-%m-%d %H:%M:%S}"


def _comment_text(value: str) -> str:
    # Keeps a value on its own "#" comment line
    return value.replace("\r", " ").replace("\n", " ")


def _json_number(value: float, format_spec: str) -> str:
    if not math.isfinite(value):
        raise ValueError(f"Cannot write non-finite sample {value!r} as JSON")
    return format(value, format_spec)


def save_waveform_csv(waveform: CapturedWaveform, filename: str | Path) -> None:
    """Save a waveform as CSV with a commented metadata header.

    Args:
        waveform: CapturedWaveform to save
        filename: Path to the output CSV file
    """
    with _atomic_open(filename) as f:
        f.write(f"# Waveform Export - {_comment_text(waveform.description)}\n")
        f.write(f"# Captured: {_fmt_timestamp(waveform.capture_time)}\n")
        f.write(f"# Channel: {waveform.channel_number}\n")
        f.write(f"# Sample Count: {waveform.sample_count}\n")
        f.write("# Export Format: CSV\n")
        f.write(f"# Export Time: {_fmt_timestamp(datetime.now())}\n")
        f.write("Time (s),Voltage (V)\n")
        for t, v in zip(waveform.time_data, waveform.voltage_data, strict=True):
            f.write(f"{_fmt_time(t)},{_fmt_voltage(v)}\n")


def save_waveform_json(
    waveform: CapturedWaveform,
    filename: str | Path,
    software: str = DEFAULT_SOFTWARE_LABEL,
) -> None:
    """Save a waveform as a JSON document with metadata and time/voltage pairs.

    Data points are written as numeric literals in the same 6-digit
    scientific/fixed notation as the CSV export, e.g.
    ``{"time": 1.000000e-06, "voltage": 0.100000}``.

    Args:
        waveform: CapturedWaveform to save
        filename: Path to the output JSON file
        software: Label stored in the metadata block

    Raises:
        ValueError: If a sample is NaN or infinite
    """
    metadata = {
        "channel": waveform.channel_number,
        "captureTime": waveform.capture_time.isoformat(),
        "sampleCount": waveform.sample_count,
        "description": waveform.description,
        "exportFormat": "JSON",
        "exportTime": datetime.now(UTC).isoformat(),
        "software": software,
    }
    points = [
        f'      {{"time": {_json_number(t, ".6e")}, '
        f'"voltage": {_json_number(v, ".6f")}}}'
        for t, v in zip(waveform.time_data, waveform.voltage_data, strict=True)
    ]

    with _atomic_open(filename) as f:
        f.write("{\n")
        f.write('  "metadata": ')
        f.write(json.dumps(metadata, indent=2).replace("\n", "\n  "))
        f.write(",\n")
        f.write('  "waveform": {\n')
        f.write('    "timeUnit": "seconds",\n')
        f.write('    "voltageUnit": "volts",\n')
        if points:
            f.write('    "data": [\n')
            f.write(",\n".join(points))
            f.write("\n    ]\n")
        else:
            f.write('    "data": []\n')
        f.write("  }\n")
        f.write("}\n")


def _matlab_vector(name: str, values: list[str]) -> str:
    indent = " " * len(f"{name} = [")
    parts = []
    for i, value in enumerate(values):
        if i % MATLAB_ELEMENTS_PER_LINE == 0 and i > 0:
            parts.append(f", ...\n{indent}")
        elif i > 0:
            parts.append(", ")
        parts.append(value)
    return f"{name} = [{''.join(parts)}];\n"


def _matlab_string(value: str) -> str:
    return value.replace("'", "''").replace("\n", " ")


def save_waveform_matlab(
    waveform: CapturedWaveform,
    filename: str | Path,
    software: str = DEFAULT_SOFTWARE_LABEL,
) -> None:
    """Save a waveform as a MATLAB/Octave script that defines time and voltage.

    Args:
        waveform: CapturedWaveform to save
        filename: Path to the output .m file
        software: Label written into the header comment
    """
    captured = waveform.capture_time
    with _atomic_open(filename) as f:
        f.write("% MATLAB compatible waveform data\n")
        f.write(f"% Generated by: {software}\n")
        f.write(f"% Channel: {waveform.channel_number}\n")
        f.write(f"% Captured: {_fmt_timestamp(captured)}\n")
        f.write(f"% Sample Count: {waveform.sample_count}\n")
        f.write(f"% Export Time: {_fmt_timestamp(datetime.now())}\n")
        f.write("\n")

        f.write("% Time data (seconds)\n")
        f.write(_matlab_vector("time", [_fmt_time(t) for t in waveform.time_data]))
        f.write("\n")

        f.write("% Voltage data (volts)\n")
        f.write(
            _matlab_vector("voltage", [_fmt_voltage(v) for v in waveform.voltage_data])
        )
        f.write("\n")

        f.write("% Metadata structure\n")
        f.write("metadata = struct();\n")
        f.write(f"metadata.channel = {waveform.channel_number};\n")
        f.write(f"metadata.sampleCount = {waveform.sample_count};\n")
        f.write(f"metadata.captureTime = '{_fmt_timestamp(captured)}';\n")
        f.write(f"metadata.description = '{_matlab_string(waveform.description)}';\n")
        f.write("\n")

        f.write("% Usage examples:\n")
        f.write("% figure;\n")
        f.write("% plot(time, voltage);\n")
        f.write("% xlabel('Time (s)');\n")
        f.write("% ylabel('Voltage (V)');\n")
        f.write(
            f"% title('Channel {waveform.channel_number} Waveform - "
            f"{captured:%H:%M:%S}');\n"
        )
        f.write("% grid on;\n")


def _epoch_microseconds(value: datetime) -> int:
    # Naive datetimes are taken as local time
    return (value.astimezone(UTC) - _EPOCH) // timedelta(microseconds=1)


def _approximate_raw(voltage: float) -> int:
    return min(255, max(0, round((voltage + 2.0) * 127.0 / 4.0)))


def save_waveform_raw(waveform: CapturedWaveform, filename: str | Path) -> None:
    """Save a waveform in the compact RIGOL_RAW_V1 binary container.

    All integers are little-endian. Layout::

        12 bytes  ASCII signature "RIGOL_RAW_V1"
        int32     channel number
        int64     capture time, microseconds since 1970-01-01 UTC
        int32     sample count
        int32     description length in bytes, then UTF-8 description
        int32     preamble value count (0 if absent), then float64 values
        int32     raw sample count, then one unsigned byte per sample

    Without raw samples each voltage is re-quantized to one byte with
    round((v + 2.0) * 127.0 / 4.0), clamped to 0..255.
    """
    description = waveform.description.encode("utf-8")
    preamble = waveform.calibration.known_values() if waveform.calibration else []

    if waveform.has_raw_data:
        raw = waveform.raw_data or b""
    else:
        raw = bytes(_approximate_raw(v) for v in waveform.voltage_data)

    with _atomic_open(filename, "wb") as f:
        f.write(RAW_SIGNATURE)
        f.write(
            struct.pack(
                "<iqi",
                waveform.channel_number,
                _epoch_microseconds(waveform.capture_time),
                waveform.sample_count,
            )
        )
        f.write(struct.pack("<i", len(description)))
        f.write(description)
        f.write(struct.pack("<i", len(preamble)))
        if preamble:
            f.write(struct.pack(f"<{len(preamble)}d", *preamble))
        f.write(struct.pack("<i", len(raw)))
        f.write(raw)


def _missing_preamble_fields(calibration: CalibrationRecord | None) -> list[str]:
    if calibration is None or calibration.is_complete:
        return []
    return [
        name
        for name, value in zip(
            CalibrationRecord.field_names(), calibration.values(), strict=True
        )
        if value is None
    ]


def _reconstruct_raw(waveform: CapturedWaveform, index: int) -> int:
    if waveform.has_raw_data and waveform.raw_data is not None:
        return waveform.raw_data[index]
    y_increment, y_origin, y_reference = vertical_scale(waveform.calibration)
    if abs(y_increment) <= 1e-12:
        return round(y_reference)
    return round((waveform.voltage_data[index] - y_origin) / y_increment + y_reference)


def save_waveform_with_preamble(
    waveform: CapturedWaveform,
    filename: str | Path,
    software: str = DEFAULT_SOFTWARE_LABEL,
) -> None:
    """Save a waveform as CSV with every preamble value and the raw ADC codes.

    The header documents the preamble fields and the reconstruction formulas
    so the file can be interpreted without the instrument manual.
    """
    preamble = waveform.calibration.known_values() if waveform.calibration else []

    with _atomic_open(filename) as f:
        f.write("# Complete Rigol DS1000Z-E Waveform Export\n")
        f.write(f"# Generated by: {software}\n")
        f.write(f"# Export time: {_fmt_timestamp(datetime.now())}\n")
        f.write(f"# Channel: {waveform.channel_number}\n")
        f.write(f"# Captured: {_fmt_timestamp(waveform.capture_time)}\n")
        f.write(f"# Sample count: {waveform.sample_count}\n")
        f.write(f"# Description: {_comment_text(waveform.description)}\n")
        f.write("#\n")
        f.write("# SCPI Preamble Parameters (for complete data reconstruction):\n")
        for i, meaning in enumerate(PREAMBLE_FIELD_DESCRIPTIONS):
            f.write(f"# [{i}] {meaning}\n")
        f.write("#\n")

        if preamble:
            for i, value in enumerate(preamble[:PREAMBLE_FIELD_COUNT]):
                f.write(f"# Preamble[{i}]: {value:.6e}\n")
        else:
            f.write("# No preamble data available\n")
        missing = _missing_preamble_fields(waveform.calibration)
        if preamble and missing:
            f.write(f"# Not reported (defaults used): {', '.join(missing)}\n")

        f.write("#\n")
        f.write("# Voltage calculation: V = (ADC - YReference) * YIncrement + YOrigin\n")
        f.write("# Time calculation: T = XOrigin + (Index * XIncrement)\n")
        f.write("#\n")
        f.write("# Data format: Index, Time(s), Voltage(V), RawADC\n")
        f.write("Index,Time,Voltage,RawADC\n")
        for i, (t, v) in enumerate(
            zip(waveform.time_data, waveform.voltage_data, strict=True)
        ):
            f.write(f"{i},{_fmt_time(t)},{_fmt_voltage(v)},{_reconstruct_raw(waveform, i)}\n")


def export_waveform(
    waveform: CapturedWaveform | None,
    path: str | Path,
    fmt: ExportFormat | str,
    software: str = DEFAULT_SOFTWARE_LABEL,
) -> bool:
    """Export a waveform to a file in the requested format.

    Never raises: unknown formats and file errors are logged and reported by
    returning False. A failed export leaves no partial file behind.

    Args:
        waveform: Waveform to export
        path: Output file path
        fmt: ExportFormat member or format name (e.g. "csv", "json", "m")
        software: Label written into formats that carry one

    Returns:
        True if the file was written
    """
    if waveform is None:
        logger.error("Cannot export: no waveform data")
        return False

    try:
        export_format = ExportFormat.parse(fmt)
    except ValueError as e:
        logger.error("%s", e)
        return False

    try:
        if export_format is ExportFormat.CSV:
            save_waveform_csv(waveform, path)
        elif export_format is ExportFormat.JSON:
            save_waveform_json(waveform, path, software)
        elif export_format is ExportFormat.MATLAB:
            save_waveform_matlab(waveform, path, software)
        elif export_format is ExportFormat.RAW_BINARY:
            save_waveform_raw(waveform, path)
        else:
            save_waveform_with_preamble(waveform, path, software)
    except (OSError, ValueError, ArithmeticError, struct.error) as e:
        logger.error("%s export to %s failed: %s", export_format.name, path, e)
        return False

    logger.info("Exported %s to %s", export_format.name, path)
    return True
