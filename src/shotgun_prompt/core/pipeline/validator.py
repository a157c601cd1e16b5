from __future__ import annotations

"""
Configuration Validation Service.

Gatekeeper between untrusted settings (config.json, CLI overrides) and the
services. Coerces types, enforces positive limits, and fills missing keys
from the domain defaults so the builder never receives a bad value.
"""

import logging
from typing import Any, Dict, List, Tuple

from shotgun_prompt.domain.config import get_default_config

logger = logging.getLogger(__name__)

_STRING_FIELDS = ["output_dir", "target_model"]

_BOOL_FIELDS = [
    "use_unicode",
    "show_sizes",
    "show_binary",
    "confirm_excessive",
    "respect_ignore_files",
]

_POSITIVE_INT_FIELDS = ["max_file_size", "max_concurrency", "indent_size"]


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a settings dictionary.

    Args:
        config: Raw settings (usually a dictionary).
        strict: If True, raise instead of coercing or falling back.

    Returns:
        Tuple[Dict[str, Any], List[str]]: Normalized settings and warnings.

    Raises:
        TypeError: In strict mode, on a type mismatch.
        ValueError: In strict mode, on a non-positive limit.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update(config)

    for field in _STRING_FIELDS:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in _BOOL_FIELDS:
        merged[field] = _as_bool(merged.get(field), defaults[field], field, warnings, strict)

    for field in _POSITIVE_INT_FIELDS:
        merged[field] = _as_positive_int(merged.get(field), defaults[field], field, warnings, strict)

    unknown = sorted(set(merged) - set(defaults))
    for key in unknown:
        warnings.append(f"Unknown field '{key}' ignored.")
        merged.pop(key)

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    if value is None:
        return fallback
    if isinstance(value, str):
        return value.strip()

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    """Coerce numbers and human-friendly keywords into booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return fallback

    if not strict:
        if isinstance(value, (int, float)) and value in (0, 1):
            warnings.append(f"Field '{field}' converted from number {value} to bool.")
            return bool(value)
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("true", "1", "yes", "y", "on"):
                warnings.append(f"Field '{field}' converted from '{value}' to True.")
                return True
            if s in ("false", "0", "no", "n", "off"):
                warnings.append(f"Field '{field}' converted from '{value}' to False.")
                return False

    msg = f"Invalid field '{field}': expected bool, received {type(value).__name__}."
    if strict:
        raise TypeError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_positive_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Accept ints (and numeric strings when lenient) greater than zero."""
    if value is None:
        return fallback

    number: Any = value
    if isinstance(value, bool) or not isinstance(value, int):
        if strict:
            raise TypeError(f"Invalid field '{field}': expected int, received {type(value).__name__}.")
        try:
            number = int(str(value).strip())
        except ValueError:
            warnings.append(f"Invalid field '{field}': cannot parse {value!r} as int. Using fallback.")
            return fallback
        warnings.append(f"Field '{field}' converted from {value!r} to {number}.")

    if number <= 0:
        msg = f"Invalid field '{field}': must be positive, got {number}."
        if strict:
            raise ValueError(msg)
        warnings.append(f"{msg} Using fallback.")
        return fallback

    return number
