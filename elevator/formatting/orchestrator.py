"""Concurrently elevate the rewritable segments of a prompt.

Code (fenced or inline) is never sent to the enhancer.  Plain and quote
segments are sent in parallel, each with the recursion guard set, and a
failed call simply leaves that segment's original text in place.

Progress is reported through an explicit :class:`ProgressReporter`
rather than ambient logging, so callers and tests can observe it::

    segments = await elevate_segments(segments, enhancer, reporter=my_reporter)
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any, Protocol

from elevator.errors import EnhancerError, SegmentationError
from elevator.formatting.types import Enhancer, Segment, SegmentType

logger = logging.getLogger(__name__)


# ── Progress reporting ──────────────────────────────────────────────


class ProgressReporter(Protocol):
    """Receives ``segments_classified``, ``segment_failed`` and
    ``segments_elevated`` events with keyword details."""

    def report(self, event: str, **fields: Any) -> None: ...


class LoggingReporter:
    """Default reporter: one log line per event."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def report(self, event: str, **fields: Any) -> None:
        level = logging.WARNING if event.endswith("_failed") else logging.INFO
        details = ", ".join(f"{key}={value}" for key, value in fields.items())
        self._log.log(level, f"{event}: {details}")


# ── Eligibility ─────────────────────────────────────────────────────


def segment_source(segment: Segment) -> str:
    """Text that would be sent to the enhancer for *segment*."""
    kind = segment.type
    if kind is SegmentType.QUOTE:
        return segment.formatting.content
    if kind in (SegmentType.PLAIN, SegmentType.CODEBLOCK, SegmentType.INLINECODE):
        return segment.formatting.text
    raise SegmentationError(f"Unhandled segment type: {kind!r}")


def is_eligible(segment: Segment) -> bool:
    """True for non-blank plain and quote segments."""
    kind = segment.type
    if kind in (SegmentType.CODEBLOCK, SegmentType.INLINECODE):
        return False
    if kind in (SegmentType.QUOTE, SegmentType.PLAIN):
        return bool(segment_source(segment).strip())
    raise SegmentationError(f"Unhandled segment type: {kind!r}")


def _split_whitespace(text: str) -> tuple[str, str, str]:
    """Return ``(leading, core, trailing)`` whitespace split of *text*."""
    core = text.strip()
    leading = text[: len(text) - len(text.lstrip())]
    trailing = text[len(text.rstrip()):]
    return leading, core, trailing


# ── Elevation ───────────────────────────────────────────────────────


async def _elevate_one(
    segment: Segment,
    enhancer: Enhancer,
    semaphore: asyncio.Semaphore,
) -> Segment:
    leading, core, trailing = _split_whitespace(segment_source(segment))
    async with semaphore:
        result = await enhancer.enhance(core, skip_format_preservation=True)
    if not result or not result.strip():
        raise EnhancerError("Enhancer returned an empty response")
    # Surrounding whitespace keeps paragraph breaks next to preserved code
    return replace(segment, elevated=f"{leading}{result.strip()}{trailing}")


async def elevate_segments(
    segments: Sequence[Segment],
    enhancer: Enhancer,
    *,
    reporter: ProgressReporter | None = None,
    max_concurrency: int | None = None,
) -> list[Segment]:
    """Elevate every eligible segment concurrently.

    Parameters
    ----------
    segments : Sequence[Segment]
        Output of :func:`~elevator.formatting.extractor.extract_segments`.
    enhancer : Enhancer
        Called as ``enhance(text, skip_format_preservation=True)``.
    reporter : ProgressReporter, optional
        Receives progress events (defaults to :class:`LoggingReporter`).
    max_concurrency : int, optional
        Upper bound on in-flight enhancer calls (default: unbounded).

    Returns
    -------
    list[Segment]
        Same length and order as *segments*.  Eligible segments whose
        call succeeded carry ``elevated``; everything else is unchanged.
    """
    reporter = reporter or LoggingReporter()
    results: list[Segment] = list(segments)

    eligible = [i for i, segment in enumerate(segments) if is_eligible(segment)]
    reporter.report(
        "segments_classified",
        total=len(segments),
        eligible=len(eligible),
        preserved=len(segments) - len(eligible),
    )
    if not eligible:
        reporter.report("segments_elevated", elevated=0, failed=0, preserved=len(segments))
        return results

    semaphore = asyncio.Semaphore(max_concurrency or len(eligible))
    outcomes = await asyncio.gather(
        *(_elevate_one(segments[i], enhancer, semaphore) for i in eligible),
        return_exceptions=True,
    )

    failed = 0
    for index, outcome in zip(eligible, outcomes):
        if isinstance(outcome, Exception):
            failed += 1
            reporter.report(
                "segment_failed",
                index=index,
                type=segments[index].type.value,
                error=f"{type(outcome).__name__}: {outcome}",
            )
        elif isinstance(outcome, BaseException):
            # Cancellation is not a per-segment failure
            raise outcome
        else:
            results[index] = outcome

    reporter.report(
        "segments_elevated",
        elevated=len(eligible) - failed,
        failed=failed,
        preserved=len(segments) - len(eligible),
    )
    return results
