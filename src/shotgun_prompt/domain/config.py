from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of user preferences as JSON inside the user
data directory. Missing or corrupted files fall back to defaults so the
CLI always starts with a complete settings dictionary.
"""

import json
import logging
import os
from typing import Any, Dict

from shotgun_prompt.domain.constants import (
    CURRENT_CONFIG_VERSION,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_TARGET_MODEL,
)
from shotgun_prompt.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"


def get_config_path() -> str:
    """Return the absolute path of the persisted settings file."""
    return os.path.join(get_user_data_dir(), CONFIG_FILE_NAME)

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime settings.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Builder
        "max_file_size": DEFAULT_MAX_FILE_SIZE,
        "max_concurrency": DEFAULT_MAX_CONCURRENCY,

        # Tree format
        "use_unicode": True,
        "show_sizes": False,
        "show_binary": True,
        "indent_size": 4,

        # Selection
        "respect_ignore_files": True,

        # Output
        "output_dir": "",
        "target_model": DEFAULT_TARGET_MODEL,

        # Safety
        "confirm_excessive": True,
    }


def get_default_app_state() -> Dict[str, Any]:
    """Generate the full structure stored in config.json."""
    return {
        "version": CURRENT_CONFIG_VERSION,
        "settings": get_default_config(),
    }

# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_app_state() -> Dict[str, Any]:
    """
    Load application state from disk, merged over the defaults.

    Returns:
        Dict[str, Any]: The loaded state or a default structure on failure.
    """
    state = get_default_app_state()
    config_path = get_config_path()

    if not os.path.exists(config_path):
        logger.debug("Config file not found. Returning defaults.")
        return state

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config '{config_path}': {e}. Using defaults.")
        return state

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Resetting to defaults.")
        return state

    settings = data.get("settings")
    if isinstance(settings, dict):
        state["settings"].update(settings)

    state["version"] = CURRENT_CONFIG_VERSION
    return state


def save_app_state(state: Dict[str, Any]) -> None:
    """
    Persist application state to disk.

    Args:
        state: The state dictionary to save.
    """
    config_path = get_config_path()
    try:
        os.makedirs(os.path.dirname(config_path), exist_ok=True)
        state["version"] = CURRENT_CONFIG_VERSION
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(state, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {config_path}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")

# -----------------------------------------------------------------------------
# Facade API
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """Retrieve the active settings dictionary."""
    return dict(load_app_state()["settings"])


def save_config(config: Dict[str, Any]) -> None:
    """Save the provided settings dictionary."""
    state = load_app_state()
    state["settings"] = dict(config)
    save_app_state(state)
