"""Shared test fixtures for ragset."""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from ragset.config import TypesetConfig
from ragset.models import CharBox, Line

NBSP = "\u00a0"

# ── Helpers ────────────────────────────────────────────────────────────


def make_line(
    line_id: int,
    width: float,
    token_start: int = 0,
    token_end: int = 3,
    start: int = 0,
    end: int = 0,
    top: float = 0.0,
) -> Line:
    """Create a Line whose slot count follows from its token range."""
    return Line(
        line_id=line_id,
        start=start,
        end=end,
        token_start=token_start,
        token_end=token_end,
        top=top,
        width=width,
        slots=max(0, token_end - token_start - 1),
    )


def make_lines(
    widths: Sequence[float],
    token_counts: Optional[Sequence[int]] = None,
    chars_per_token: int = 5,
    line_height: float = 20.0,
) -> List[Line]:
    """Build contiguous lines from a list of widths.

    Every token is ``chars_per_token`` characters plus one separator, so a
    line of ``n`` tokens spans ``n * (chars_per_token + 1)`` characters.
    """
    lines: List[Line] = []
    tok = 0
    pos = 0
    for i, w in enumerate(widths):
        n = token_counts[i] if token_counts else 3
        chars = n * (chars_per_token + 1)
        lines.append(
            make_line(i, w, tok, tok + n, start=pos, end=pos + chars, top=i * line_height)
        )
        tok += n
        pos += chars
    return lines


class FakeFont:
    """Monospaced stand-in for a Pillow font: every character is 10 px."""

    size = 10

    def getlength(self, text: str) -> float:
        return 10.0 * len(text)

    def getmetrics(self) -> Tuple[int, int]:
        return (8, 2)


class GridBlock:
    """A pre-broken text block on a fixed character grid.

    ``breaks`` lists the character offsets where a new line begins.  Each
    character is ``char_width`` wide; odd characters are shifted down by
    ``jitter`` px.  Characters in ``missing`` cannot be measured.
    """

    def __init__(
        self,
        text: str,
        breaks: Iterable[int] = (),
        container_width: float = 200.0,
        char_width: float = 10.0,
        line_height: float = 20.0,
        jitter: float = 0.0,
        missing: Iterable[int] = (),
    ) -> None:
        self.text = text
        self.breaks = sorted(breaks)
        self.container_width = container_width
        self.char_width = char_width
        self.line_height = line_height
        self.jitter = jitter
        self.missing = set(missing)
        self.word_spacing: Dict[int, float] = {}
        self.letter_spacing = 0.0
        self.resets = 0

    def _line_start(self, index: int) -> Tuple[int, int]:
        line = 0
        start = 0
        for b in self.breaks:
            if index >= b:
                line += 1
                start = b
        return line, start

    def char_box(self, index: int) -> Optional[CharBox]:
        if index < 0 or index >= len(self.text) or index in self.missing:
            return None
        line, start = self._line_start(index)
        x0 = (index - start) * self.char_width
        y0 = line * self.line_height + (self.jitter if index % 2 else 0.0)
        return CharBox(index=index, x0=x0, y0=y0, x1=x0 + self.char_width, y1=y0 + self.line_height)

    def range_box(self, start: int, end: int) -> Optional[Tuple[float, float, float, float]]:
        boxes = [b for b in (self.char_box(i) for i in range(start, end)) if b is not None]
        if not boxes:
            return None
        return (
            min(b.x0 for b in boxes),
            min(b.y0 for b in boxes),
            max(b.x1 for b in boxes),
            max(b.y1 for b in boxes),
        )

    def reset_spacing(self) -> None:
        self.resets += 1
        self.word_spacing.clear()
        self.letter_spacing = 0.0

    def set_word_spacing(self, line_id: int, px: float) -> None:
        self.word_spacing[line_id] = px

    def set_letter_spacing(self, px: float) -> None:
        self.letter_spacing = px


class BrokenBlock(GridBlock):
    """A block whose geometry queries always fail."""

    def char_box(self, index: int) -> Optional[CharBox]:
        raise RuntimeError("layout engine unavailable")


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def default_cfg() -> TypesetConfig:
    """Return a default TypesetConfig."""
    return TypesetConfig()


@pytest.fixture
def letters_text() -> str:
    """Thirteen one-letter words; wraps as 5 / 5 / 3 at 100 px with FakeFont."""
    return "a b c d e f g h i j k l m"
