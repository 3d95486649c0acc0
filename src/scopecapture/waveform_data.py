"""Captured waveform data class for ScopeCapture."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from scopecapture.calibration import CalibrationRecord

# Assumed sample rate when the preamble does not provide a usable x_increment
DEFAULT_SAMPLE_RATE = 1e6


@dataclass(frozen=True)
class CapturedWaveform:
    """One waveform downloaded from the oscilloscope.

    Keeps the raw ADC codes and the preamble next to the converted values so a
    capture can be exported with everything needed to reconstruct it.
    """

    channel_number: int
    capture_time: datetime
    voltage_data: tuple[float, ...] = ()
    time_data: tuple[float, ...] = ()
    raw_data: bytes | None = None
    calibration: CalibrationRecord | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if self.channel_number < 1:
            raise ValueError(f"Invalid channel number: {self.channel_number}")
        # Accept lists from callers but store immutable sequences
        object.__setattr__(self, "voltage_data", tuple(self.voltage_data))
        object.__setattr__(self, "time_data", tuple(self.time_data))
        if self.raw_data is not None:
            object.__setattr__(self, "raw_data", bytes(self.raw_data))
        if len(self.voltage_data) != len(self.time_data):
            raise ValueError("voltage_data and time_data must have the same length")
        if self.raw_data and len(self.raw_data) != len(self.voltage_data):
            raise ValueError("raw_data must have one code per voltage sample")
        if not self.description:
            object.__setattr__(
                self,
                "description",
                f"CH{self.channel_number} - {self.capture_time:%H:%M:%S}",
            )

    @property
    def sample_count(self) -> int:
        return len(self.voltage_data)

    @property
    def has_raw_data(self) -> bool:
        return self.raw_data is not None and len(self.raw_data) == self.sample_count

    @property
    def sample_rate(self) -> float:
        """Sample rate in Sa/s derived from the preamble x_increment."""
        if self.calibration is not None:
            x_increment = self.calibration.x_increment
            if x_increment is not None and abs(x_increment) > 1e-12:
                return 1.0 / x_increment
        return DEFAULT_SAMPLE_RATE

    def detailed_info(self) -> str:
        """Multi-line summary of the capture for display."""
        lines = [
            f"Channel: {self.channel_number}",
            f"Captured: {self.capture_time:%Y-%m-%d %H:%M:%S}",
            f"Sample Count: {self.sample_count:,}",
            f"Sample Rate: {self.sample_rate / 1e6:.1f} MSa/s",
            f"Description: {self.description}",
        ]
        if self.voltage_data:
            lines.append(
                f"Voltage Range: {min(self.voltage_data):.3f}V "
                f"to {max(self.voltage_data):.3f}V"
            )
        if self.time_data:
            span_ms = (self.time_data[-1] - self.time_data[0]) * 1000
            lines.append(f"Time Span: {span_ms:.3f}ms")
        return "\n".join(lines)

    def __str__(self) -> str:
        return (
            f"CH{self.channel_number} - {self.capture_time:%H:%M:%S} - "
            f"{self.sample_count:,} samples"
        )
