"""Waveform capture and in-memory storage for ScopeCapture."""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from scopecapture.block import decode_block
from scopecapture.calibration import parse_preamble
from scopecapture.config import CaptureConfig
from scopecapture.conversion import convert_samples
from scopecapture.export import ExportFormat, export_waveform
from scopecapture.instrument_protocol import InstrumentLink
from scopecapture.store import WaveformStore
from scopecapture.waveform_data import CapturedWaveform

logger = logging.getLogger(__name__)

# Rough in-memory cost per sample (voltage + time as 8-byte floats)
BYTES_PER_SAMPLE = 16

# Waveform file formats the scope can write to its own USB stick
USB_WAVEFORM_FORMATS = ("CSV", "BIN", "TXT")

WaveformCallback = Callable[[CapturedWaveform], None]


class CaptureError(Exception):
    """Raised internally when a capture step fails."""


class WaveformCapture:
    """Capture waveforms from an instrument link and keep them in memory.

    All public operations report failure through their return values and log
    the reason; nothing is raised to the caller.
    """

    def __init__(
        self,
        link: InstrumentLink,
        config: CaptureConfig | None = None,
        store: WaveformStore | None = None,
    ) -> None:
        self._link = link
        self._config = config if config is not None else CaptureConfig()
        self._store = (
            store if store is not None else WaveformStore(self._config.memory_limit)
        )
        self._subscribers: list[WaveformCallback] = []
        # One capture at a time per link
        self._capture_lock = threading.Lock()

    @property
    def store(self) -> WaveformStore:
        return self._store

    @property
    def memory_limit(self) -> int:
        return self._store.capacity

    @memory_limit.setter
    def memory_limit(self, value: int) -> None:
        self._store.capacity = value

    def subscribe(self, callback: WaveformCallback) -> None:
        """Register a callable invoked with every newly stored waveform."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: WaveformCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify(self, waveform: CapturedWaveform) -> None:
        for callback in list(self._subscribers):
            try:
                callback(waveform)
            except Exception:
                logger.exception("Waveform subscriber %r failed", callback)

    def _command(self, command: str) -> None:
        if not self._link.send_command(command):
            raise CaptureError(f"Command rejected: {command}")

    def wait_until_stopped(self) -> None:
        """Poll the trigger status until the scope reports STOP.

        Raises:
            CaptureError: If the scope is not stopped within the settle timeout
        """
        deadline = time.monotonic() + self._config.settle_timeout_s
        while True:
            status = self._link.send_query(":TRIGger:STATus?").strip().upper()
            if status == "STOP":
                return
            if time.monotonic() >= deadline:
                raise CaptureError(
                    f"Scope not stopped after {self._config.settle_timeout_s}s "
                    f"(status {status or 'unknown'!r})"
                )
            time.sleep(self._config.poll_interval_s)

    def _acquire(self, channel: int) -> CapturedWaveform:
        # Stop acquisition so the waveform memory is stable while we read it
        self._command(":STOP")
        self.wait_until_stopped()

        self._command(f":WAVeform:SOURce CHANnel{channel}")
        self._command(f":WAVeform:MODE {self._config.waveform_mode}")
        self._command(":WAVeform:FORMat BYTE")

        preamble_response = self._link.send_query(":WAVeform:PREamble?")
        if not preamble_response:
            logger.warning("Empty preamble response, using zero calibration")
        else:
            logger.debug("Preamble: %s", preamble_response)
        calibration = parse_preamble(preamble_response)

        block = self._link.send_binary_query(":WAVeform:DATA?")
        if not block:
            raise CaptureError("No binary data received")
        logger.debug("Received %d bytes of block data", len(block))

        result = decode_block(block)
        if not result:
            reason = result.error or "empty block"
            raise CaptureError(f"Failed to parse waveform data: {reason}")
        raw = result.payload

        voltages, times = convert_samples(raw, calibration)
        if voltages:
            logger.debug(
                "Converted %d points (range %.3fV to %.3fV)",
                len(voltages),
                min(voltages),
                max(voltages),
            )

        return CapturedWaveform(
            channel_number=channel,
            capture_time=datetime.now().astimezone(),
            voltage_data=tuple(voltages),
            time_data=tuple(times),
            raw_data=raw,
            calibration=calibration,
        )

    def capture_waveform(self, channel: int = 1) -> CapturedWaveform | None:
        """Capture one waveform from a channel and store it.

        Args:
            channel: Channel number (1-4)

        Returns:
            The captured waveform, or None if any step failed
        """
        if channel < 1:
            logger.error("Cannot capture: invalid channel %d", channel)
            return None
        if not self._link.is_connected():
            logger.error("Cannot capture: oscilloscope not connected")
            return None

        with self._capture_lock:
            logger.info("Capturing waveform from channel %d", channel)
            try:
                waveform = self._acquire(channel)
            except CaptureError as e:
                logger.error("Capture from channel %d failed: %s", channel, e)
                return None
            self._store.insert(waveform)

        logger.info("Captured %d points from channel %d", waveform.sample_count, channel)
        self._notify(waveform)
        return waveform

    def export_waveform(
        self,
        waveform: CapturedWaveform | None,
        path: str | Path,
        fmt: ExportFormat | str = ExportFormat.CSV,
    ) -> bool:
        """Export a waveform to a file. See scopecapture.export.export_waveform."""
        return export_waveform(waveform, path, fmt, software=self._config.software_label)

    def list_stored_waveforms(self) -> list[CapturedWaveform]:
        return self._store.list()

    def clear_store(self) -> int:
        return self._store.clear()

    def get_memory_status(self) -> str:
        """Summarize stored waveforms per channel, sample total and memory use."""
        waveforms = self._store.list()
        per_channel = Counter(w.channel_number for w in waveforms)
        channels = ", ".join(
            f"CH{channel}: {count}" for channel, count in sorted(per_channel.items())
        )
        total_points = sum(w.sample_count for w in waveforms)
        memory_mb = total_points * BYTES_PER_SAMPLE / (1024 * 1024)

        summary = f"Stored: {len(waveforms)} waveforms"
        if channels:
            summary += f" ({channels})"
        return (
            f"{summary}\n"
            f"Total Points: {total_points:,}\n"
            f"Est. Memory: ~{memory_mb:.1f} MB\n"
            f"Limit: {self._store.capacity} waveforms"
        )

    def save_waveform_to_usb(
        self, channel: int, filename: str, fmt: str = "CSV"
    ) -> bool:
        """Have the scope save a channel's waveform to its own USB drive.

        Args:
            channel: Channel number (1-4)
            filename: File name on the USB drive, without extension
            fmt: One of CSV, BIN, TXT

        Returns:
            True if every command was accepted
        """
        fmt = fmt.upper()
        if fmt not in USB_WAVEFORM_FORMATS:
            logger.error("Unsupported USB waveform format %r", fmt)
            return False
        if not self._link.is_connected():
            logger.error("Cannot save to USB: oscilloscope not connected")
            return False

        with self._capture_lock:
            try:
                self._command(":STOP")
                self.wait_until_stopped()
                self._command(f":STORage:WAVeform:FORMat {fmt}")
                self._command(f":STORage:WAVeform:SOURce CHANnel{channel}")
                self._command(f':STORage:WAVeform:FNAMe "{filename}"')
                self._command(":STORage:WAVeform:SAVE")
            except CaptureError as e:
                logger.error("USB save failed: %s", e)
                return False

        logger.info("Saved CH%d waveform to USB: %s", channel, filename)
        return True

    def check_usb_status(self) -> bool:
        """Return True if the scope reports files on its USB drive."""
        if not self._link.is_connected():
            logger.error("Cannot check USB: oscilloscope not connected")
            return False

        status = self._link.send_query(":STORage:STATus?")
        logger.info("Storage status: %s", status or "unknown")
        files = self._link.send_query(":STORage:CATalog?")
        if files:
            logger.info("Files on USB: %s", files)
            return True
        logger.info("No USB drive detected or drive is empty")
        return False
