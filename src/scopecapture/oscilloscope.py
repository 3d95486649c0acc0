"""Oscilloscope module for ScopeCapture.

Re-exports the capture engine and its data types in one place.
"""

from scopecapture.calibration import CalibrationRecord, parse_preamble
from scopecapture.capture import WaveformCapture
from scopecapture.export import ExportFormat, export_waveform
from scopecapture.instrument_protocol import InstrumentLink
from scopecapture.rigol_ds1000z import RigolDS1000Z
from scopecapture.store import WaveformStore
from scopecapture.waveform_data import CapturedWaveform

__all__ = [
    "CalibrationRecord",
    "CapturedWaveform",
    "ExportFormat",
    "InstrumentLink",
    "RigolDS1000Z",
    "WaveformCapture",
    "WaveformStore",
    "export_waveform",
    "parse_preamble",
]
