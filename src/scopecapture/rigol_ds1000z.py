"""Rigol DS1000Z oscilloscope link for ScopeCapture."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pyvisa

if TYPE_CHECKING:
    from pyvisa.resources import MessageBasedResource

logger = logging.getLogger(__name__)

# Rigol USB vendor ID and the DS1000Z / DS1000Z-E product IDs
RIGOL_VENDOR_ID = "0x1AB1"
DS1000Z_PRODUCT_IDS = ("0x04CE", "0x0517")


class RigolDS1000Z:
    """Rigol DS1000Z/DS1000Z-E oscilloscope link using SCPI over VISA."""

    # Large enough for a full screen of BYTE data in one read
    DEFAULT_TIMEOUT_MS = 5000

    @staticmethod
    def _looks_like_ds1000z(resource: str, idn: str) -> bool:
        if "RIGOL" in idn.upper() and "DS1" in idn.upper():
            return True
        upper = resource.upper()
        return RIGOL_VENDOR_ID.upper() in upper and any(
            pid.upper() in upper for pid in DS1000Z_PRODUCT_IDS
        )

    @classmethod
    def auto_connect(cls) -> RigolDS1000Z:
        """Find first Rigol DS1000Z on VISA bus and return connected instance.

        Raises:
            ConnectionError: If no Rigol DS1000Z oscilloscope is found.
        """
        rm = pyvisa.ResourceManager()
        for resource in rm.list_resources():
            try:
                instr: MessageBasedResource = rm.open_resource(resource)  # type: ignore[assignment]
                idn = instr.query("*IDN?")
            except (pyvisa.errors.VisaIOError, OSError) as e:
                logger.debug("Skipping %s: %s", resource, e)
                continue
            if cls._looks_like_ds1000z(resource, idn):
                logger.info("Found Rigol oscilloscope: %s (%s)", resource, idn.strip())
                instr.timeout = cls.DEFAULT_TIMEOUT_MS
                return cls(resource, instrument=instr)
            instr.close()
        raise ConnectionError("No Rigol DS1000Z oscilloscope found")

    def __init__(
        self, resource: str, instrument: MessageBasedResource | None = None
    ) -> None:
        """Initialize with a VISA resource string.

        Args:
            resource: VISA resource string (e.g., "USB0::...")
            instrument: Already opened resource to use instead of opening one
        """
        self._resource = resource
        self._instrument: MessageBasedResource | None = instrument

    @property
    def resource(self) -> str:
        return self._resource

    def connect(self) -> None:
        """Connect to the oscilloscope.

        Raises:
            ConnectionError: If the resource cannot be opened.
        """
        if self._instrument is not None:
            return
        try:
            rm = pyvisa.ResourceManager()
            instrument: MessageBasedResource = rm.open_resource(self._resource)  # type: ignore[assignment]
        except (pyvisa.errors.VisaIOError, OSError) as e:
            raise ConnectionError(f"Cannot open {self._resource}: {e}") from e
        instrument.timeout = self.DEFAULT_TIMEOUT_MS
        self._instrument = instrument
        logger.info("Connected to %s", self._resource)

    def disconnect(self) -> None:
        """Disconnect from the oscilloscope."""
        if self._instrument is not None:
            self._instrument.close()
            self._instrument = None
            logger.info("Disconnected from %s", self._resource)

    def is_connected(self) -> bool:
        return self._instrument is not None

    def identify(self) -> str:
        """Return the ``*IDN?`` reply, or an empty string if unavailable."""
        return self.send_query("*IDN?")

    def send_command(self, command: str) -> bool:
        if self._instrument is None:
            logger.error("Cannot send %r: not connected", command)
            return False
        try:
            self._instrument.write(command)
        except (pyvisa.errors.VisaIOError, OSError) as e:
            logger.error("Command %r failed: %s", command, e)
            return False
        logger.debug("-> %s", command)
        return True

    def send_query(self, query: str) -> str:
        if self._instrument is None:
            logger.error("Cannot send %r: not connected", query)
            return ""
        try:
            reply = self._instrument.query(query).strip()
        except (pyvisa.errors.VisaIOError, OSError) as e:
            logger.error("Query %r failed: %s", query, e)
            return ""
        logger.debug("<- %s %s", query, reply)
        return reply

    def send_binary_query(self, query: str) -> bytes:
        if self._instrument is None:
            logger.error("Cannot send %r: not connected", query)
            return b""
        try:
            self._instrument.write(query)
            data = self._instrument.read_raw()
        except (pyvisa.errors.VisaIOError, OSError) as e:
            logger.error("Binary query %r failed: %s", query, e)
            return b""
        logger.debug("<- %s %d bytes", query, len(data))
        return bytes(data)
