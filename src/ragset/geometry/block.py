"""Host capability used to inspect text that has already been laid out."""

from __future__ import annotations

from typing import Optional, Protocol, Tuple

from ..models import CharBox


class TextBlock(Protocol):
    """A single run of rendered text plus the width it was wrapped to.

    Implementations answer geometry queries against their current layout
    and accept spacing corrections.  ``reset_spacing`` must restore the
    natural layout so corrections never accumulate across passes.
    """

    text: str
    container_width: float

    def char_box(self, index: int) -> Optional[CharBox]:
        """Geometry of character *index*, or None when it cannot be measured."""
        ...

    def range_box(
        self, start: int, end: int
    ) -> Optional[Tuple[float, float, float, float]]:
        """Union bbox of characters ``start`` .. ``end`` (half-open), or None."""
        ...

    def reset_spacing(self) -> None:
        ...

    def set_word_spacing(self, line_id: int, px: float) -> None:
        ...

    def set_letter_spacing(self, px: float) -> None:
        ...
