"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from scopecapture.config import CaptureConfig, load_config


def test_default_config_is_valid() -> None:
    config = CaptureConfig()

    assert config.validate() == []
    assert config.memory_limit == 100
    assert config.waveform_mode == "NORMal"


def test_validate_reports_each_problem() -> None:
    config = CaptureConfig(
        memory_limit=0, settle_timeout_s=0, poll_interval_s=-1, waveform_mode="FAST"
    )

    errors = config.validate()

    assert len(errors) == 4
    assert any("memory_limit" in e for e in errors)
    assert any("waveform_mode" in e for e in errors)


def test_load_config(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"memory_limit": 5, "waveform_mode": "RAW"}))

    config = load_config(path)

    assert config.memory_limit == 5
    assert config.waveform_mode == "RAW"
    assert config.settle_timeout_s == 2.0


def test_load_config_ignores_unknown_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"memory_limit": 3, "colour": "blue"}))

    assert load_config(path).memory_limit == 3


def test_load_config_rejects_invalid_values(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"memory_limit": -1}))

    with pytest.raises(ValueError, match="memory_limit"):
        load_config(path)


def test_load_config_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")

    with pytest.raises(ValueError, match="JSON object"):
        load_config(path)
