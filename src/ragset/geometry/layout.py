"""Pillow-backed layout engine implementing :class:`TextBlock`.

Wraps plain text greedily into a fixed-width container the way a browser
does for ``white-space: normal`` text: lines break only at runs of
breakable whitespace, never inside a word and never at a non-breaking
space.  A word wider than the container stays alone on its own line.

Letter spacing takes part in choosing break points.  Word spacing is a
per-line correction applied after the breaks are chosen, so it never moves
a word to another line.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from PIL import ImageFont

from ..config import TypesetConfig
from ..models import BREAKABLE_WS_RE, CharBox, is_breakable

logger = logging.getLogger(__name__)

_WS_RUN_RE = re.compile(r"\s+")

DEFAULT_FONT_FILE = "DejaVuSans.ttf"


def load_font(path: Optional[str] = None, size: int = 18) -> Any:
    """Load a TrueType font, falling back to Pillow's built-in font."""
    try:
        return ImageFont.truetype(path or DEFAULT_FONT_FILE, size)
    except OSError:
        logger.debug("Font %r not found; using Pillow default font", path)
        return ImageFont.load_default()


def _font_width(font: Any, text: str) -> float:
    if not text:
        return 0.0
    if hasattr(font, "getlength"):
        return float(font.getlength(text))
    x0, _, x1, _ = font.getbbox(text)
    return float(x1 - x0)


def _default_line_height(font: Any, mult: float) -> float:
    try:
        ascent, descent = font.getmetrics()
        return float(ascent + descent) * mult
    except AttributeError:
        return float(getattr(font, "size", 16)) * mult


class PillowTextBlock:
    """A text run laid out at ``container_width`` using a Pillow font.

    Parameters
    ----------
    text:
        Plain text, possibly containing non-breaking joins.
    font:
        Any object with ``getlength`` (or ``getbbox``) such as
        :class:`PIL.ImageFont.FreeTypeFont`.
    container_width:
        Wrap width in pixels.
    line_height:
        Vertical advance per line; derived from font metrics when omitted.
    """

    def __init__(
        self,
        text: str,
        font: Any,
        container_width: float,
        *,
        line_height: Optional[float] = None,
        cfg: Optional[TypesetConfig] = None,
    ) -> None:
        if cfg is None:
            cfg = TypesetConfig()
        self.text = text or ""
        self.font = font
        self.container_width = float(container_width)
        self.line_height = (
            float(line_height)
            if line_height is not None
            else _default_line_height(font, cfg.line_height_mult)
        )
        self._letter_spacing = 0.0
        self._word_spacing: Dict[int, float] = {}
        self._ranges: Optional[List[Tuple[int, int]]] = None
        self._boxes: Optional[List[CharBox]] = None

    # ── Spacing ────────────────────────────────────────────────────────

    @property
    def letter_spacing(self) -> float:
        return self._letter_spacing

    @property
    def word_spacing(self) -> Dict[int, float]:
        return dict(self._word_spacing)

    def reset_spacing(self) -> None:
        """Drop all spacing corrections and return to the natural layout."""
        if self._letter_spacing or self._word_spacing:
            self._letter_spacing = 0.0
            self._word_spacing.clear()
            self._invalidate(relayout=True)

    def set_word_spacing(self, line_id: int, px: float) -> None:
        """Add *px* at every breakable inter-word gap of rendered line *line_id*."""
        if px:
            self._word_spacing[line_id] = float(px)
        else:
            self._word_spacing.pop(line_id, None)
        self._invalidate(relayout=False)

    def set_letter_spacing(self, px: float) -> None:
        self._letter_spacing = float(px)
        self._invalidate(relayout=True)

    def set_text(self, text: str) -> None:
        """Replace the content; any spacing corrections are discarded."""
        self.text = text or ""
        self._letter_spacing = 0.0
        self._word_spacing.clear()
        self._invalidate(relayout=True)

    def resize(self, container_width: float) -> None:
        self.container_width = float(container_width)
        self._word_spacing.clear()
        self._invalidate(relayout=True)

    def _invalidate(self, *, relayout: bool) -> None:
        self._boxes = None
        if relayout:
            self._ranges = None

    # ── Layout ─────────────────────────────────────────────────────────

    def _width(self, s: str) -> float:
        return _font_width(self.font, s) + self._letter_spacing * len(s)

    def line_ranges(self) -> List[Tuple[int, int]]:
        """Half-open character ranges of the rendered lines.

        A breakable whitespace run at a break stays on the line it ends,
        the way trailing spaces hang in a browser.
        """
        if self._ranges is not None:
            return self._ranges

        text = self.text
        ranges: List[Tuple[int, int]] = []
        if not text:
            self._ranges = ranges
            return ranges

        # Unbreakable units sit between breakable whitespace runs.
        units: List[Tuple[int, int]] = []
        pos = 0
        for m in BREAKABLE_WS_RE.finditer(text):
            if m.start() > pos:
                units.append((pos, m.start()))
            pos = m.end()
        if pos < len(text):
            units.append((pos, len(text)))

        line_start = 0
        has_content = False
        for u_start, u_end in units:
            if has_content and self._width(text[line_start:u_end]) > self.container_width:
                ranges.append((line_start, u_start))
                line_start = u_start
            has_content = True
        ranges.append((line_start, len(text)))

        self._ranges = ranges
        return ranges

    def _layout_boxes(self) -> List[CharBox]:
        if self._boxes is not None:
            return self._boxes

        text = self.text
        boxes: List[CharBox] = []
        for line_id, (start, end) in enumerate(self.line_ranges()):
            top = line_id * self.line_height
            bottom = top + self.line_height
            ws = self._word_spacing.get(line_id, 0.0)
            segment = text[start:end]
            content_start = start + (len(segment) - len(segment.lstrip()))
            content_end = start + len(segment.rstrip())
            # Word spacing lands on the last character of each internal
            # breakable gap; no-break joins stay tight.
            spaced = set()
            if ws:
                for m in _WS_RUN_RE.finditer(text, content_start, content_end):
                    if is_breakable(m.group()):
                        spaced.add(m.end() - 1)
            x = 0.0
            for k in range(start, end):
                x0 = x
                x1 = x0 + self._width(text[k])
                if k in spaced:
                    x1 += ws
                boxes.append(CharBox(index=k, x0=x0, y0=top, x1=x1, y1=bottom))
                x = x1

        self._boxes = boxes
        return boxes

    # ── TextBlock queries ──────────────────────────────────────────────

    def char_box(self, index: int) -> Optional[CharBox]:
        boxes = self._layout_boxes()
        if 0 <= index < len(boxes):
            return boxes[index]
        return None

    def range_box(
        self, start: int, end: int
    ) -> Optional[Tuple[float, float, float, float]]:
        boxes = self._layout_boxes()[max(0, start) : max(0, end)]
        if not boxes:
            return None
        return (
            min(b.x0 for b in boxes),
            min(b.y0 for b in boxes),
            max(b.x1 for b in boxes),
            max(b.y1 for b in boxes),
        )

    def rendered_lines(self) -> List[str]:
        """Text of each rendered line without trailing whitespace."""
        return [self.text[s:e].rstrip() for s, e in self.line_ranges()]
