"""Line geometry: reading the line breaks of already-rendered text.

Public API
----------
- :class:`TextBlock`: host capability protocol (geometry queries + spacing)
- :class:`PillowTextBlock`: Pillow-backed layout engine implementing it
- :func:`read_lines`: line boundaries and widths of a rendered block
- :func:`measure_line_breaks`: lay out a string and read it back
- :func:`load_font`: TrueType font with built-in fallback
"""

from .block import TextBlock
from .layout import PillowTextBlock, load_font
from .reader import measure_line_breaks, read_lines

__all__ = [
    "TextBlock",
    "PillowTextBlock",
    "load_font",
    "read_lines",
    "measure_line_breaks",
]
