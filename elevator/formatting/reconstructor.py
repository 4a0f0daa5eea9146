"""Reassemble segments into a single document.

Elevated segments contribute their replacement text as-is (a rewritten
quote is emitted as prose, without re-adding ``>``).  All other
segments contribute their original text, delimiters included, so an
unelevated document round-trips byte for byte.
"""

from collections.abc import Iterable

from elevator.formatting.types import Segment


def reconstruct_segment(segment: Segment) -> str:
    """Render one segment: the elevated text if set, else the original."""
    if segment.elevated is not None:
        return segment.elevated
    return segment.formatting.text


def reconstruct_text(segments: Iterable[Segment]) -> str:
    """Concatenate *segments* in order, with no separators added."""
    return "".join(reconstruct_segment(segment) for segment in segments)
