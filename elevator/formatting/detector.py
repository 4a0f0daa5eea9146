"""Detect regions of a prompt that need special handling during elevation.

Three kinds of region are recognised:

* **codeblock**: fenced code (```` ``` ```` or ``~~~``, three or more
  characters, optional language tag).  An unterminated fence runs to
  the end of the text instead of being dropped.
* **quote**: a run of consecutive lines starting with ``>``.  Nested
  ``>>`` lines stay in the same span.
* **inlinecode**: a single-backtick pair on one line.

Detection runs in that order and each later pass skips offsets already
claimed, so the returned spans never overlap.

Usage::

    from elevator.formatting.detector import detect_formatting
    spans = detect_formatting("Use `foo()` here.\\n\\n```py\\nprint(1)\\n```")
"""

import logging
import re
from collections.abc import Sequence

from elevator.formatting.types import FormattingSpan, SegmentType

logger = logging.getLogger(__name__)

MIN_FENCE_LENGTH = 3
FENCE_CHARS = "`~"

# Remainder of an opening fence line that counts as an info string.
_INFO_STRING_RE = re.compile(r"[ \t]*([\w+#.-]*)[^`\n]*$")
_QUOTE_MARKER_RE = re.compile(r"\s*(>+)")
_QUOTE_PREFIX_RE = re.compile(r"^\s*(?:>[ \t]?)+")


# ── Scanning helpers ────────────────────────────────────────────────


def _run_length(text: str, pos: int, char: str) -> int:
    end = pos
    while end < len(text) and text[end] == char:
        end += 1
    return end - pos


def _line_start(text: str, pos: int) -> int:
    return text.rfind("\n", 0, pos) + 1


def _line_end(text: str, pos: int) -> int:
    """Offset of the ``\\n`` ending the line at *pos*, or ``len(text)``."""
    idx = text.find("\n", pos)
    return len(text) if idx == -1 else idx


def _is_escaped(text: str, pos: int) -> bool:
    """True when *pos* is preceded by an odd number of backslashes."""
    count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def _find_closing_fence(text: str, fence: str, start: int) -> int:
    """Offset of the fence closing a block opened with *fence*, or -1.

    Tilde closers must start a line, like tilde openers.
    """
    pos = text.find(fence, start)
    while pos != -1:
        if fence[0] == "`" or not text[_line_start(text, pos):pos].strip():
            return pos
        pos = text.find(fence, pos + 1)
    return -1


def _overlaps(start: int, end: int, claimed: Sequence[FormattingSpan]) -> bool:
    return any(span.start < end and start < span.end for span in claimed)


def _iter_lines(text: str):
    """Yield ``(start, end)`` for every line, *end* excluding ``\\r\\n``."""
    pos = 0
    while pos < len(text):
        end = _line_end(text, pos)
        content_end = end - 1 if end > pos and text[end - 1] == "\r" else end
        yield pos, content_end
        pos = end + 1


# ── Detectors ───────────────────────────────────────────────────────


def detect_code_blocks(text: str) -> list[FormattingSpan]:
    """Find fenced code blocks.

    A backtick fence may open anywhere on a line; a tilde fence only at
    the start of a line (after optional indentation).  The block closes
    at the next run of the same fence character that is at least as
    long as the opening run (for tildes, a run starting a line).  With
    no closing run the block extends to the end of *text* and is marked
    ``closed=False``.
    """
    if not text:
        return []

    blocks: list[FormattingSpan] = []
    length = len(text)
    pos = 0

    while pos < length:
        char = text[pos]
        if char not in FENCE_CHARS:
            pos += 1
            continue

        run = _run_length(text, pos, char)
        if run < MIN_FENCE_LENGTH:
            pos += run
            continue
        if char == "`" and _is_escaped(text, pos):
            pos += run
            continue
        if char == "~" and text[_line_start(text, pos):pos].strip():
            pos += run
            continue

        fence = char * run
        opening_end = pos + run
        line_end = _line_end(text, opening_end)
        info = _INFO_STRING_RE.match(text, opening_end, line_end)

        if info:
            # Fence owns the rest of its line: marker is fence + language tag
            language = info.group(1) or None
            marker = text[pos:line_end].rstrip("\r")
            body_start = min(line_end + 1, length)
        else:
            # Same-line code such as ```x = 1```
            language = None
            marker = fence
            body_start = opening_end

        close_start = _find_closing_fence(text, fence, body_start)
        if close_start == -1:
            end = length
            content = text[body_start:]
            closed = False
            logger.debug(f"Unterminated {fence} fence at offset {pos}, extending to end of text")
        else:
            end = close_start + _run_length(text, close_start, char)
            content = text[body_start:close_start]
            if content.endswith("\n"):
                content = content[:-1].rstrip("\r")
            closed = True

        blocks.append(FormattingSpan(
            type=SegmentType.CODEBLOCK,
            marker=marker,
            start=pos,
            end=end,
            content=content,
            text=text[pos:end],
            language=language,
            closed=closed,
        ))
        pos = end

    return blocks


def detect_block_quotes(
    text: str,
    claimed: Sequence[FormattingSpan] | None = None,
) -> list[FormattingSpan]:
    """Group consecutive ``>`` lines into quote spans.

    Lines that touch a *claimed* span (code blocks by default) end the
    current run and are never quoted themselves.  A span stops at the
    end of its last line; the line terminator stays outside.
    """
    if not text:
        return []
    if claimed is None:
        claimed = detect_code_blocks(text)

    quotes: list[FormattingSpan] = []
    run: list[tuple[int, int]] = []

    def flush() -> None:
        if not run:
            return
        start, end = run[0][0], run[-1][1]
        lines = [text[s:e] for s, e in run]
        quotes.append(FormattingSpan(
            type=SegmentType.QUOTE,
            marker=_QUOTE_MARKER_RE.match(lines[0]).group(1),
            start=start,
            end=end,
            content="\n".join(_QUOTE_PREFIX_RE.sub("", line) for line in lines),
            text=text[start:end],
        ))
        run.clear()

    for start, end in _iter_lines(text):
        line = text[start:end]
        if line.lstrip().startswith(">") and not _overlaps(start, end, claimed):
            run.append((start, end))
        else:
            flush()
    flush()

    return quotes


def detect_inline_code(
    text: str,
    claimed: Sequence[FormattingSpan] | None = None,
) -> list[FormattingSpan]:
    """Find single-backtick code spans outside *claimed* regions.

    Pairs are matched greedily left to right on a single line.  An
    escaped backtick (``\\```) never opens a span, and runs of two or
    more backticks are neither openers nor closers.
    """
    if not text:
        return []
    if claimed is None:
        claimed = detect_code_blocks(text)

    spans: list[FormattingSpan] = []
    length = len(text)
    pos = 0

    while pos < length:
        if text[pos] != "`":
            pos += 1
            continue

        run = _run_length(text, pos, "`")
        if run != 1 or _is_escaped(text, pos) or _overlaps(pos, pos + 1, claimed):
            pos += run
            continue

        line_end = _line_end(text, pos)
        close = None
        j = pos + 1
        while j < line_end:
            if text[j] == "`":
                closing_run = _run_length(text, j, "`")
                if closing_run == 1:
                    close = j
                    break
                j += closing_run
                continue
            j += 1

        if close is None or _overlaps(pos, close + 1, claimed):
            pos += 1
            continue

        spans.append(FormattingSpan(
            type=SegmentType.INLINECODE,
            marker="`",
            start=pos,
            end=close + 1,
            content=text[pos + 1:close],
            text=text[pos:close + 1],
        ))
        pos = close + 1

    return spans


def detect_formatting(text: str) -> list[FormattingSpan]:
    """Detect every code block, quote and inline code span in *text*.

    Returns
    -------
    list[FormattingSpan]
        Sorted by ``start`` and non-overlapping.  Empty for empty text
        or text without markers; plain gaps are left to the extractor.
    """
    if not text:
        return []

    code_blocks = detect_code_blocks(text)
    quotes = detect_block_quotes(text, claimed=code_blocks)
    inline = detect_inline_code(text, claimed=code_blocks + quotes)

    spans = sorted(code_blocks + quotes + inline, key=lambda s: s.start)
    logger.debug(
        f"Detected {len(code_blocks)} code block(s), {len(quotes)} quote(s), "
        f"{len(inline)} inline code span(s) in {len(text):,} chars"
    )
    return spans


def has_code_blocks(spans: Sequence[FormattingSpan]) -> bool:
    """True when any span is a fenced code block."""
    return any(span.type is SegmentType.CODEBLOCK for span in spans)
