"""Prompt validation applied before any model call."""

import logging

from elevator.config import CFG
from elevator.errors import PromptValidationError

logger = logging.getLogger(__name__)

DEFAULT_MIN_LENGTH: int = int(CFG.get("min_prompt_length", 3))
DEFAULT_MAX_LENGTH: int = int(CFG.get("max_prompt_length", 10000))


def validate_prompt(
    text: str,
    *,
    min_length: int = DEFAULT_MIN_LENGTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Trim *text* and check it against the length rules.

    Unicode, newlines and tabs are all allowed.

    Returns
    -------
    str
        The trimmed prompt.

    Raises
    ------
    PromptValidationError
        With code ``EMPTY_PROMPT``, ``TOO_SHORT`` or ``TOO_LONG``.
    """
    trimmed = text.strip()

    if not trimmed:
        raise PromptValidationError(
            "EMPTY_PROMPT",
            "Prompt cannot be empty or contain only whitespace",
        )

    if len(trimmed) < min_length:
        raise PromptValidationError(
            "TOO_SHORT",
            f"Prompt must be at least {min_length} characters long",
            {"min_length": min_length, "actual_length": len(trimmed)},
        )

    if len(trimmed) > max_length:
        raise PromptValidationError(
            "TOO_LONG",
            f"Prompt must not exceed {max_length:,} characters",
            {"max_length": max_length, "actual_length": len(trimmed)},
        )

    logger.debug(f"Prompt validated ({len(trimmed):,} chars)")
    return trimmed
