from __future__ import annotations

"""
Unit tests for the Configuration domain.

Verifies defaults, persistence round-trips through the user data
directory, and recovery from missing or corrupted files.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from shotgun_prompt.domain import config as config_domain
from shotgun_prompt.domain.constants import CURRENT_CONFIG_VERSION, DEFAULT_MAX_FILE_SIZE


@pytest.fixture
def config_path(tmp_path: Path):
    path = tmp_path / "config.json"
    with patch.object(config_domain, "get_config_path", return_value=str(path)):
        yield path


def test_default_config_keys() -> None:
    defaults = config_domain.get_default_config()

    assert defaults["max_file_size"] == DEFAULT_MAX_FILE_SIZE
    assert defaults["use_unicode"] is True
    assert defaults["confirm_excessive"] is True
    assert defaults["output_dir"] == ""


def test_missing_file_returns_defaults(config_path: Path) -> None:
    assert config_domain.load_config() == config_domain.get_default_config()


def test_save_and_load_round_trip(config_path: Path) -> None:
    settings = config_domain.get_default_config()
    settings["max_concurrency"] = 2
    config_domain.save_config(settings)

    stored = json.loads(config_path.read_text(encoding="utf-8"))
    assert stored["version"] == CURRENT_CONFIG_VERSION
    assert stored["settings"]["max_concurrency"] == 2
    assert config_domain.load_config()["max_concurrency"] == 2


def test_partial_file_is_merged_over_defaults(config_path: Path) -> None:
    config_path.write_text(json.dumps({"settings": {"show_sizes": True}}), encoding="utf-8")

    loaded = config_domain.load_config()
    assert loaded["show_sizes"] is True
    assert loaded["max_file_size"] == DEFAULT_MAX_FILE_SIZE


@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]"])
def test_corrupted_file_falls_back(config_path: Path, raw: str) -> None:
    config_path.write_text(raw, encoding="utf-8")
    assert config_domain.load_config() == config_domain.get_default_config()
