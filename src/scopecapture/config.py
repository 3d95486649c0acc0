"""Configuration for ScopeCapture.

Settings can be left at their defaults or loaded from a JSON file whose keys
match the field names of CaptureConfig.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Modes accepted by :WAVeform:MODE
WAVEFORM_MODES = ("NORMal", "MAXimum", "RAW")


@dataclass
class CaptureConfig:
    """Capture and storage settings.

    Attributes:
        memory_limit: Maximum number of waveforms kept in memory
        settle_timeout_s: How long to wait for the scope to report STOP
        poll_interval_s: Delay between trigger status polls
        waveform_mode: Value sent with :WAVeform:MODE
        software_label: Name written into exported files
        output_dir: Default directory for exported files
    """

    memory_limit: int = 100
    settle_timeout_s: float = 2.0
    poll_interval_s: float = 0.05
    waveform_mode: str = "NORMal"
    software_label: str = "ScopeCapture"
    output_dir: str = "captures"

    def validate(self) -> list[str]:
        """Validate settings and return list of error messages (empty if valid)."""
        errors = []
        if not isinstance(self.memory_limit, int) or self.memory_limit < 1:
            errors.append("memory_limit must be an integer >= 1")
        if self.settle_timeout_s <= 0:
            errors.append("settle_timeout_s must be positive")
        if self.poll_interval_s <= 0:
            errors.append("poll_interval_s must be positive")
        if self.waveform_mode not in WAVEFORM_MODES:
            errors.append(f"waveform_mode must be one of {', '.join(WAVEFORM_MODES)}")
        if not self.software_label:
            errors.append("software_label must be a non-empty string")
        return errors

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaptureConfig:
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown config key %r", key)
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: str | Path) -> CaptureConfig:
    """Load and validate a CaptureConfig from a JSON file.

    Raises:
        ValueError: If the file is not a JSON object or a setting is invalid
        OSError: If the file cannot be read
    """
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    config = CaptureConfig.from_dict(data)
    errors = config.validate()
    if errors:
        raise ValueError(f"Invalid config {path}: " + "; ".join(errors))
    logger.info("Loaded config from %s", path)
    return config
