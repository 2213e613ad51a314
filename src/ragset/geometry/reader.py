"""Line geometry reader: where did the host break a rendered text block?

The reader knows nothing about how the text was laid out.  It walks the
characters of a :class:`~ragset.geometry.block.TextBlock`, compares each
measurable character's top edge with the previous one and opens a new line
whenever the offset jumps by more than ``cfg.line_tolerance_px``.  Each
line's width is then taken from the bounding box of its character range,
trailing whitespace excluded.  A line's slots are its breakable gaps; gaps
already joined with a no-break space are not counted.

Unmeasurable input (no text, zero-width container, no character the host
can measure) yields an empty list; callers treat that as "nothing to do".
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Any, List, Optional

import numpy as np

from ..config import TypesetConfig
from ..models import Line, Token, is_breakable, tokenize
from .block import TextBlock
from .layout import PillowTextBlock

logger = logging.getLogger(__name__)


def _breakable_slots(text: str, tokens: List[Token], token_start: int, token_end: int) -> int:
    """Breakable gaps between consecutive tokens of one line; joins do not count."""
    return sum(
        1
        for k in range(token_start, token_end - 1)
        if is_breakable(text[tokens[k].end : tokens[k + 1].start])
    )


def read_lines(block: TextBlock, cfg: Optional[TypesetConfig] = None) -> List[Line]:
    """Return the rendered lines of *block* in reading order.

    Every token of ``block.text`` is covered by exactly one line (the line
    holding its first character).  ``line_id`` is the index of the rendered
    line, suitable for :meth:`TextBlock.set_word_spacing`.
    """
    if cfg is None:
        cfg = TypesetConfig()

    text = block.text or ""
    if not text.strip():
        return []
    if block.container_width <= 0:
        logger.debug("read_lines: container width %s, nothing to measure", block.container_width)
        return []

    measured = [b for b in (block.char_box(i) for i in range(len(text))) if b is not None]
    if not measured:
        logger.debug("read_lines: no measurable characters in %d-char block", len(text))
        return []

    indices = np.array([b.index for b in measured], dtype=int)
    tops = np.array([b.y0 for b in measured], dtype=float)
    # Positions in ``measured`` where a new line begins.
    jumps = np.flatnonzero(np.abs(np.diff(tops)) > cfg.line_tolerance_px) + 1

    starts = [0] + [int(indices[j]) for j in jumps]
    line_tops = [float(tops[0])] + [float(tops[j]) for j in jumps]
    ends = starts[1:] + [len(text)]

    tokens = tokenize(text)
    token_starts = [t.start for t in tokens]

    lines: List[Line] = []
    for line_id, (start, end, top) in enumerate(zip(starts, ends, line_tops)):
        token_start = bisect_left(token_starts, start)
        token_end = bisect_left(token_starts, end)
        if token_end <= token_start:
            continue

        content_end = start + len(text[start:end].rstrip())
        box = block.range_box(start, content_end)
        if box is None:
            logger.debug("read_lines: line %d (%d..%d) not measurable", line_id, start, end)
            width = 0.0
        else:
            width = float(box[2] - box[0])

        lines.append(
            Line(
                line_id=line_id,
                start=start,
                end=end,
                token_start=token_start,
                token_end=token_end,
                top=top,
                width=width,
                slots=_breakable_slots(text, tokens, token_start, token_end),
            )
        )

    logger.debug(
        "read_lines: %d chars, %d tokens -> %d lines", len(text), len(tokens), len(lines)
    )
    return lines


def measure_line_breaks(
    text: str,
    width: float,
    font: Any,
    cfg: Optional[TypesetConfig] = None,
) -> List[Line]:
    """Lay *text* out at *width* with *font* and read the line breaks back."""
    block = PillowTextBlock(text, font, width, cfg=cfg)
    return read_lines(block, cfg)
