"""Typographic line-break refinement: word binding and rag smoothing.

Frequently-used symbols are re-exported here for convenience.
For the host capability protocol or layout internals import directly from
the relevant submodule, e.g.::

    from ragset.geometry.block import TextBlock
    from ragset.geometry.layout import PillowTextBlock
"""

# ── Core models & config ──────────────────────────────────────────────

from .binding import bind, join_gaps, typeset_text
from .config import ConfigValidationError, TypesetConfig, load_config
from .driver import TextNode, TypesetDriver, typeset_tree
from .geometry import PillowTextBlock, load_font, measure_line_breaks, read_lines
from .heading import bind_heading
from .models import CharBox, Line, PassResult, RagPlan, Token, tokenize
from .smoothing import (
    apply_letter_spacing,
    apply_spacing,
    merge_orphan_line,
    plan_spacing,
    rag_stats,
    rejoin_by_budget,
    smooth_block,
    uniform_letter_spacing,
)

__all__ = [
    # Models & config
    "TypesetConfig",
    "ConfigValidationError",
    "load_config",
    "Token",
    "tokenize",
    "CharBox",
    "Line",
    "RagPlan",
    "PassResult",
    # Binding
    "bind",
    "bind_heading",
    "typeset_text",
    "join_gaps",
    # Geometry
    "PillowTextBlock",
    "load_font",
    "read_lines",
    "measure_line_breaks",
    # Smoothing
    "merge_orphan_line",
    "plan_spacing",
    "apply_spacing",
    "smooth_block",
    "rejoin_by_budget",
    "uniform_letter_spacing",
    "apply_letter_spacing",
    "rag_stats",
    # Driver
    "TextNode",
    "TypesetDriver",
    "typeset_tree",
]
