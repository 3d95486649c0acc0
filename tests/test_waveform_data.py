"""Tests for the captured waveform data class."""

import dataclasses

import pytest

from scopecapture.calibration import CalibrationRecord
from scopecapture.waveform_data import CapturedWaveform

from conftest import BASE_TIME, make_waveform


def test_captured_waveform_default_description() -> None:
    waveform = CapturedWaveform(channel_number=2, capture_time=BASE_TIME)

    assert waveform.description == "CH2 - 12:00:00"
    assert waveform.sample_count == 0


def test_captured_waveform_stores_tuples() -> None:
    waveform = make_waveform()

    assert isinstance(waveform.voltage_data, tuple)
    assert isinstance(waveform.time_data, tuple)
    assert waveform.sample_count == 4
    assert waveform.has_raw_data


def test_captured_waveform_is_immutable() -> None:
    waveform = make_waveform()

    with pytest.raises(dataclasses.FrozenInstanceError):
        waveform.description = "changed"  # type: ignore[misc]


def test_captured_waveform_rejects_length_mismatch() -> None:
    with pytest.raises(ValueError, match="same length"):
        CapturedWaveform(
            channel_number=1,
            capture_time=BASE_TIME,
            voltage_data=[0.0, 1.0],
            time_data=[0.0],
        )

    with pytest.raises(ValueError, match="raw_data"):
        CapturedWaveform(
            channel_number=1,
            capture_time=BASE_TIME,
            voltage_data=[0.0, 1.0],
            time_data=[0.0, 1.0],
            raw_data=b"\x80",
        )


def test_captured_waveform_rejects_invalid_channel() -> None:
    with pytest.raises(ValueError, match="channel"):
        CapturedWaveform(channel_number=0, capture_time=BASE_TIME)


def test_sample_rate_from_preamble() -> None:
    waveform = make_waveform(
        calibration=CalibrationRecord(x_increment=2e-9),
    )

    assert waveform.sample_rate == pytest.approx(5e8)


def test_sample_rate_default_when_unknown() -> None:
    assert make_waveform(calibration=CalibrationRecord()).sample_rate == 1e6
    assert make_waveform(calibration=CalibrationRecord.zeros()).sample_rate == 1e6


def test_str_and_detailed_info() -> None:
    waveform = make_waveform(raw=bytes([128]) * 1200)

    assert str(waveform) == "CH1 - 12:00:00 - 1,200 samples"
    info = waveform.detailed_info()
    assert "Channel: 1" in info
    assert "Sample Count: 1,200" in info
    assert "Sample Rate: 1.0 MSa/s" in info
    assert "Voltage Range: 0.000V to 0.000V" in info
    assert "Time Span:" in info
