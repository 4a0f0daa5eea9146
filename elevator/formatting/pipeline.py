"""Entry point for format-preserving elevation.

Two modes:

* **DIRECT**: the whole prompt goes to the enhancer in one call.  Used
  when the prompt has no fenced code block.
* **SEGMENTED**: detect → extract → elevate segments → reconstruct, so
  code blocks come back byte for byte.

Any unexpected error on the segmented path falls back to DIRECT with
the original prompt.  Only a failure of that final whole-document call
reaches the caller.

Usage::

    from elevator.formatting.pipeline import elevate_with_format_preservation
    elevated = await elevate_with_format_preservation(prompt, enhancer)
"""

import logging
from collections.abc import Sequence
from enum import Enum

from elevator.formatting.detector import detect_formatting, has_code_blocks
from elevator.formatting.extractor import extract_segments
from elevator.formatting.orchestrator import (
    LoggingReporter,
    ProgressReporter,
    elevate_segments,
)
from elevator.formatting.reconstructor import reconstruct_text
from elevator.formatting.types import Enhancer, FormattingSpan

logger = logging.getLogger(__name__)


class ElevationMode(str, Enum):
    DIRECT = "direct"
    SEGMENTED = "segmented"


def choose_mode(spans: Sequence[FormattingSpan]) -> ElevationMode:
    """SEGMENTED only when a fenced code block is present."""
    return ElevationMode.SEGMENTED if has_code_blocks(spans) else ElevationMode.DIRECT


def _report_fallback(reporter: ProgressReporter, stage: str, exc: Exception) -> None:
    reporter.report(
        "mode_fallback",
        mode=ElevationMode.DIRECT.value,
        stage=stage,
        error=f"{type(exc).__name__}: {exc}",
    )


async def _elevate_direct(text: str, enhancer: Enhancer) -> str:
    return await enhancer.enhance(text, skip_format_preservation=True)


async def _elevate_segmented(
    text: str,
    spans: Sequence[FormattingSpan],
    enhancer: Enhancer,
    reporter: ProgressReporter | None,
    max_concurrency: int | None,
) -> str:
    segments = extract_segments(text, spans)
    elevated = await elevate_segments(
        segments,
        enhancer,
        reporter=reporter,
        max_concurrency=max_concurrency,
    )
    return reconstruct_text(elevated)


async def elevate_with_format_preservation(
    text: str,
    enhancer: Enhancer,
    *,
    reporter: ProgressReporter | None = None,
    max_concurrency: int | None = None,
) -> str:
    """Elevate *text*, leaving every fenced and inline code span untouched.

    Parameters
    ----------
    text : str
        The prompt to elevate.
    enhancer : Enhancer
        Rewrites individual strings.  Every call made from here sets
        ``skip_format_preservation=True``.
    reporter : ProgressReporter, optional
        Receives ``mode_selected`` / ``mode_fallback`` and, on the
        segmented path, per-segment progress events.
    max_concurrency : int, optional
        Upper bound on concurrent enhancer calls.

    Returns
    -------
    str
        The elevated document.

    Raises
    ------
    Exception
        Whatever the enhancer raises on the whole-document call
        (DIRECT mode, or the fallback after a segmented failure).
    """
    reporter = reporter or LoggingReporter()

    try:
        spans = detect_formatting(text)
    except Exception as exc:
        logger.exception("Formatting detection failed, elevating whole prompt")
        _report_fallback(reporter, "detect", exc)
        return await _elevate_direct(text, enhancer)

    mode = choose_mode(spans)
    logger.info(f"Elevation mode: {mode.value} ({len(spans)} span(s), {len(text):,} chars)")
    reporter.report("mode_selected", mode=mode.value, spans=len(spans))

    if mode is ElevationMode.DIRECT:
        return await _elevate_direct(text, enhancer)

    try:
        return await _elevate_segmented(text, spans, enhancer, reporter, max_concurrency)
    except Exception as exc:
        logger.exception("Format-preserving elevation failed, falling back to direct mode")
        _report_fallback(reporter, "segmented", exc)

    return await _elevate_direct(text, enhancer)
