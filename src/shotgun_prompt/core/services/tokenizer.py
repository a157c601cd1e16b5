from __future__ import annotations

"""
Token Counting Service.

Measures the token density of a generated prompt with tiktoken's local
BPE encoders. When an encoder cannot be loaded (for example, the encoding
file is not cached and the network is unavailable) the count degrades to
a character-ratio heuristic instead of failing the generation.
"""

import functools
import logging
import math

import tiktoken

from shotgun_prompt.domain.constants import CHARS_PER_TOKEN_AVG, DEFAULT_TARGET_MODEL

logger = logging.getLogger(__name__)

_MODERN_ENCODING = "o200k_base"
_LEGACY_ENCODING = "cl100k_base"
_LEGACY_MARKERS = ("gpt-4-", "gpt-3.5", "legacy")


def resolve_encoding_name(model: str) -> str:
    """
    Pick the BPE encoding for a model identifier.

    Modern o-series and GPT-4o families use o200k; older GPT-4/3.5
    architectures use cl100k.
    """
    model_lower = (model or DEFAULT_TARGET_MODEL).lower()
    if any(marker in model_lower for marker in _LEGACY_MARKERS):
        return _LEGACY_ENCODING
    return _MODERN_ENCODING


@functools.lru_cache(maxsize=4)
def _get_encoding(name: str) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


def heuristic_count(text: str) -> int:
    """Estimate tokens with the characters-per-token ratio."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN_AVG)


class TokenizerService:
    """
    Model-aware token counter with a heuristic fallback.
    """

    def __init__(self, model: str = DEFAULT_TARGET_MODEL) -> None:
        self.model = model or DEFAULT_TARGET_MODEL

    def count(self, text: str) -> int:
        """
        Count tokens in ``text`` for the configured model.

        Args:
            text: Raw input text.

        Returns:
            int: BPE token count, or the heuristic estimate on encoder failure.
        """
        if not text:
            return 0

        encoding_name = resolve_encoding_name(self.model)
        try:
            encoding = _get_encoding(encoding_name)
            return len(encoding.encode(text, disallowed_special=()))
        except Exception as e:
            logger.warning(
                f"Tokenizer '{encoding_name}' unavailable ({e}). Using heuristic estimate."
            )
            return heuristic_count(text)


def count_tokens(text: str, model: str = DEFAULT_TARGET_MODEL) -> int:
    """Public shortcut: count tokens for ``model``."""
    return TokenizerService(model).count(text)
