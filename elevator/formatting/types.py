"""Shared types for format-preserving elevation.

A document is described by :class:`FormattingSpan` values (what the
detector found) and partitioned into :class:`Segment` values (what the
orchestrator rewrites and the reconstructor stitches back together).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class SegmentType(str, Enum):
    """Closed set of segment kinds.

    Adding a member means updating the detector, extractor,
    orchestrator and reconstructor together.
    """

    CODEBLOCK = "codeblock"
    INLINECODE = "inlinecode"
    QUOTE = "quote"
    PLAIN = "plain"


@dataclass(frozen=True)
class FormattingSpan:
    """A typed, offset-addressed region of the source text.

    Attributes
    ----------
    type : SegmentType
        Kind of region.
    marker : str
        Delimiter that opened the region: the fence plus info string
        (```` ```python ````), the inline backtick, or the ``>`` run.
        Empty for synthesized plain spans.
    start, end : int
        Half-open character offsets into the source.
    content : str
        Text between the delimiters.  For quotes, the per-line ``>``
        prefixes are removed.
    text : str
        Exact ``source[start:end]``, delimiters included.
    language : str | None
        Info string of a fenced code block, if any.
    closed : bool
        ``False`` when a fence was never closed and the block runs to
        the end of the text.
    """

    type: SegmentType
    marker: str
    start: int
    end: int
    content: str
    text: str
    language: str | None = None
    closed: bool = True

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Segment:
    """One partition unit; ``elevated`` replaces the original text when set."""

    formatting: FormattingSpan
    elevated: str | None = None

    @property
    def type(self) -> SegmentType:
        return self.formatting.type

    def __len__(self) -> int:
        return len(self.formatting)


class Enhancer(Protocol):
    """Anything that can rewrite a string into an elevated string.

    ``skip_format_preservation`` is the recursion guard: when true the
    implementation must rewrite *text* directly instead of routing it
    back through the format-preserving pipeline.
    """

    async def enhance(
        self, text: str, *, skip_format_preservation: bool = False
    ) -> str: ...
