"""Instrument link protocol for ScopeCapture."""

from __future__ import annotations

from typing import Protocol


class InstrumentLink(Protocol):
    """Protocol defining the SCPI link used by the capture engine.

    Implementations never raise on transport errors; failures are reported
    through the return values.
    """

    def is_connected(self) -> bool:
        """Return True if the link is open."""
        ...

    def send_command(self, command: str) -> bool:
        """Write a SCPI command.

        Args:
            command: SCPI command text (e.g., ":STOP")

        Returns:
            True if the command was written
        """
        ...

    def send_query(self, query: str) -> str:
        """Write a SCPI query and read the text reply.

        Returns:
            Reply text, or an empty string on failure
        """
        ...

    def send_binary_query(self, query: str) -> bytes:
        """Write a SCPI query and read the raw binary block reply.

        Returns:
            Reply bytes with the block header still attached, or b"" on failure
        """
        ...
