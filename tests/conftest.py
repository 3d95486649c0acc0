"""Shared test fixtures for ScopeCapture tests."""

from datetime import datetime, timedelta, timezone

import pytest

from scopecapture.calibration import CalibrationRecord
from scopecapture.config import CaptureConfig
from scopecapture.waveform_data import CapturedWaveform

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_block(payload: bytes, digits: int = 9, trailer: bytes = b"\n") -> bytes:
    """Wrap payload in a TMC block header."""
    length = str(len(payload)).zfill(digits)
    return b"#" + str(digits).encode() + length.encode() + payload + trailer


def make_waveform(
    channel: int = 1,
    offset_s: float = 0.0,
    raw: bytes | None = b"\x80\x81\x82\x83",
    calibration: CalibrationRecord | None = None,
    description: str = "",
) -> CapturedWaveform:
    """Build a waveform with 1mV/code scaling around code 128."""
    if calibration is None:
        calibration = CalibrationRecord.from_values(
            [0, 0, 4, 1, 1e-6, 0.0, 0, 0.001, 0.0, 128]
        )
    codes = raw or b""
    voltages = [(c - 128) * 0.001 for c in codes]
    times = [i * 1e-6 for i in range(len(codes))]
    return CapturedWaveform(
        channel_number=channel,
        capture_time=BASE_TIME + timedelta(seconds=offset_s),
        voltage_data=voltages,
        time_data=times,
        raw_data=raw,
        calibration=calibration,
        description=description,
    )


class MockInstrumentLink:
    """Mock instrument link that records commands and returns configured replies."""

    def __init__(self) -> None:
        self.connected = True
        self.commands: list[tuple[str, str]] = []
        self.query_responses: dict[str, str] = {":TRIGger:STATus?": "STOP"}
        self.binary_data = b""
        self.rejected_commands: set[str] = set()

    def is_connected(self) -> bool:
        return self.connected

    def send_command(self, command: str) -> bool:
        self.commands.append(("write", command))
        return command not in self.rejected_commands

    def send_query(self, query: str) -> str:
        self.commands.append(("query", query))
        return self.query_responses.get(query, "")

    def send_binary_query(self, query: str) -> bytes:
        self.commands.append(("binary_query", query))
        return self.binary_data

    @property
    def write_commands(self) -> list[str]:
        return [cmd for op, cmd in self.commands if op == "write"]


@pytest.fixture
def mock_link() -> MockInstrumentLink:
    """Provide a connected mock link that reports the scope as stopped."""
    return MockInstrumentLink()


@pytest.fixture
def fast_config() -> CaptureConfig:
    """Config with a short settle timeout so failing polls end quickly."""
    return CaptureConfig(settle_timeout_s=0.05, poll_interval_s=0.01)


@pytest.fixture
def waveform() -> CapturedWaveform:
    return make_waveform()
