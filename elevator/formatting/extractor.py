"""Split a prompt into an ordered, gap-free list of typed segments.

The detector only reports the regions it recognised.  The extractor
fills every gap between them with a synthesized ``plain`` span, so the
segments together cover the whole text exactly once.
"""

import logging
from collections.abc import Sequence

from elevator.errors import SegmentationError
from elevator.formatting.types import FormattingSpan, Segment, SegmentType

logger = logging.getLogger(__name__)


def create_plain_segment(text: str, start: int, end: int) -> Segment:
    """Wrap ``text[start:end]`` as an unformatted segment."""
    chunk = text[start:end]
    return Segment(FormattingSpan(
        type=SegmentType.PLAIN,
        marker="",
        start=start,
        end=end,
        content=chunk,
        text=chunk,
    ))


def _check_spans(text: str, spans: Sequence[FormattingSpan]) -> None:
    previous_end = 0
    for span in spans:
        if not 0 <= span.start < span.end <= len(text):
            raise SegmentationError(
                f"{span.type.value} span [{span.start}, {span.end}) is outside "
                f"a text of {len(text)} chars"
            )
        if span.start < previous_end:
            raise SegmentationError(
                f"{span.type.value} span at {span.start} overlaps or precedes "
                f"the previous span ending at {previous_end}"
            )
        if text[span.start:span.end] != span.text:
            raise SegmentationError(
                f"{span.type.value} span at {span.start} does not match the source text"
            )
        previous_end = span.end


def extract_segments(
    text: str, spans: Sequence[FormattingSpan]
) -> list[Segment]:
    """Partition *text* into segments using the detected *spans*.

    Parameters
    ----------
    text : str
        The original prompt.
    spans : Sequence[FormattingSpan]
        Output of :func:`~elevator.formatting.detector.detect_formatting`,
        sorted and non-overlapping.

    Returns
    -------
    list[Segment]
        Segments in document order, none of them elevated.

    Raises
    ------
    SegmentationError
        If *spans* are unsorted, overlapping, out of bounds, or the
        resulting segments do not reproduce *text* exactly.
    """
    if not text:
        return []

    _check_spans(text, spans)

    segments: list[Segment] = []
    cursor = 0
    for span in spans:
        if cursor < span.start:
            segments.append(create_plain_segment(text, cursor, span.start))
        segments.append(Segment(span))
        cursor = span.end
    if cursor < len(text):
        segments.append(create_plain_segment(text, cursor, len(text)))

    # Coverage postcondition
    covered = sum(len(segment) for segment in segments)
    if covered != len(text) or "".join(s.formatting.text for s in segments) != text:
        raise SegmentationError(
            f"Segments cover {covered:,} of {len(text):,} chars"
        )

    logger.debug(f"Extracted {len(segments)} segment(s) from {len(spans)} span(s)")
    return segments
