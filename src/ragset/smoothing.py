"""Rag smoothing: even out the right edge of wrapped text.

Three interchangeable strategies, all local and stateless:

* **Spacing** (:func:`plan_spacing`, :func:`smooth_block`): pull every line
  but the last towards a target width by adding a little space at each
  inter-word slot.  Adjustments outside a small band are discarded for that
  line only.
* **Re-join** (:func:`rejoin_by_budget`): no geometry at all; bind the
  word that would overflow a character budget to its predecessor.
* **Letter spacing** (:func:`uniform_letter_spacing`): one block-wide
  letter-spacing value that closes part of the average gap to the widest
  line.

Every pass that touches a block resets its spacing first, so running a
pass twice on the same geometry gives the same result.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .binding import join_gaps
from .config import TypesetConfig
from .geometry.block import TextBlock
from .geometry.reader import read_lines
from .models import Line, RagPlan, tokenize

logger = logging.getLogger(__name__)


# ── Orphan merge ───────────────────────────────────────────────────────


def merge_orphan_line(
    lines: Sequence[Line], cfg: Optional[TypesetConfig] = None
) -> Tuple[List[Line], bool]:
    """Fold a 1-2 token last line into the line above it.

    Returns the (possibly shortened) line list and whether a merge happened.
    The merged line keeps the upper line's id; its width is the sum of both
    widths, which is only used for reporting since the last line is never
    adjusted.
    """
    if cfg is None:
        cfg = TypesetConfig()
    out = list(lines)
    if len(out) < 2:
        return out, False
    last = out[-1]
    if not (1 <= last.token_count <= cfg.orphan_max_tokens):
        return out, False

    prev = out[-2]
    merged = Line(
        line_id=prev.line_id,
        start=prev.start,
        end=last.end,
        token_start=prev.token_start,
        token_end=last.token_end,
        top=prev.top,
        width=prev.width + last.width,
        slots=prev.slots + last.slots + 1,
    )
    return out[:-2] + [merged], True


# ── Spacing strategy ───────────────────────────────────────────────────


def _slot_adjustment(
    line: Line, target: float, cfg: TypesetConfig
) -> Tuple[Optional[float], str]:
    """Per-slot spacing for *line*, or None with the reason it was rejected."""
    if line.slots <= 0:
        return None, "no_slots"
    if line.width <= 0:
        return None, "unmeasured"

    per_slot = (target - line.width) / line.slots
    magnitude = abs(per_slot)
    if magnitude < cfg.min_slot_adjust_px:
        return None, "too_small"
    if per_slot < 0:
        if not cfg.allow_tightening or magnitude > cfg.max_tighten_px:
            return None, "compress"
        return per_slot, "ok"
    if per_slot > cfg.max_slot_adjust_px:
        return None, "too_large"
    return per_slot, "ok"


def plan_spacing(
    lines: Sequence[Line],
    container_width: float,
    cfg: Optional[TypesetConfig] = None,
) -> RagPlan:
    """Compute per-line word-spacing corrections.

    The target is ``cfg.target_width_fraction`` of *container_width*.  The
    last line (after any orphan merge) is never adjusted.  Fewer than two
    lines or a non-positive container width produce an empty plan.
    """
    if cfg is None:
        cfg = TypesetConfig()
    plan = RagPlan(lines=list(lines), container_width=float(container_width))
    if container_width <= 0 or len(lines) < 2:
        return plan

    plan.lines, plan.merged_orphan = merge_orphan_line(lines, cfg)
    plan.target_width = container_width * cfg.target_width_fraction

    for line in plan.lines[:-1]:
        px, reason = _slot_adjustment(line, plan.target_width, cfg)
        if px is None:
            plan.skipped[line.line_id] = reason
        else:
            plan.adjustments[line.line_id] = px

    logger.debug(
        "plan_spacing: %d lines (merged_orphan=%s), target %.2f, %d adjusted, skipped %s",
        len(plan.lines),
        plan.merged_orphan,
        plan.target_width,
        len(plan.adjustments),
        plan.skipped,
    )
    return plan


def apply_spacing(block: TextBlock, plan: RagPlan) -> None:
    """Reset *block* and apply the word spacing in *plan*."""
    block.reset_spacing()
    for line_id, px in sorted(plan.adjustments.items()):
        block.set_word_spacing(line_id, px)


def smooth_block(block: TextBlock, cfg: Optional[TypesetConfig] = None) -> RagPlan:
    """Measure *block* at its natural spacing, plan, and apply.

    Safe to call repeatedly: earlier corrections are dropped before the
    block is measured again.
    """
    if cfg is None:
        cfg = TypesetConfig()
    block.reset_spacing()
    lines = read_lines(block, cfg)
    plan = plan_spacing(lines, block.container_width, cfg)
    apply_spacing(block, plan)
    return plan


# ── Re-join strategy ───────────────────────────────────────────────────


def rejoin_by_budget(
    text: str,
    target_chars: Optional[int] = None,
    cfg: Optional[TypesetConfig] = None,
) -> str:
    """Join the gap before every token that would overflow *target_chars*.

    Works on character counts only, so it needs no rendering surface.
    """
    if cfg is None:
        cfg = TypesetConfig()
    if target_chars is None:
        target_chars = cfg.rejoin_target_chars
    if target_chars < 1:
        raise ValueError(f"target_chars={target_chars} must be >= 1")

    tokens = tokenize(text)
    if len(tokens) < 2:
        return text

    gaps = set()
    current = 0
    for tok in tokens:
        if current > 0 and current + tok.length + 1 > target_chars:
            gaps.add(tok.index - 1)
            current = tok.length
        elif current > 0:
            current += tok.length + 1
        else:
            current = tok.length
    return join_gaps(text, tokens, gaps, cfg.joiner)


# ── Letter-spacing strategy ────────────────────────────────────────────


def uniform_letter_spacing(
    lines: Sequence[Line], cfg: Optional[TypesetConfig] = None
) -> Optional[float]:
    """Block-wide letter spacing (px) that narrows the rag, or None.

    The widest non-last line is the target.  Lines falling short of it by
    more than ``cfg.letter_gap_threshold_px`` contribute their gap; a share
    of the average gap is spread over the average character count.
    """
    if cfg is None:
        cfg = TypesetConfig()
    if len(lines) < 2:
        return None

    body = list(lines[:-1])
    widths = np.array([ln.width for ln in body], dtype=float)
    gaps = widths.max() - widths
    gaps = gaps[gaps > cfg.letter_gap_threshold_px]
    if gaps.size == 0:
        return None

    avg_chars = float(np.mean([ln.char_count for ln in body]))
    if avg_chars <= 0:
        return None
    ls = min(cfg.max_letter_spacing_px, float(gaps.mean()) * cfg.letter_gap_ratio / avg_chars)
    if ls <= cfg.min_letter_spacing_px:
        return None
    return round(ls, 3)


def apply_letter_spacing(
    block: TextBlock, cfg: Optional[TypesetConfig] = None
) -> Optional[float]:
    """Reset *block*, measure it and apply :func:`uniform_letter_spacing`."""
    block.reset_spacing()
    ls = uniform_letter_spacing(read_lines(block, cfg), cfg)
    if ls is not None:
        block.set_letter_spacing(ls)
    return ls


# ── Reporting ──────────────────────────────────────────────────────────


def rag_stats(lines: Sequence[Line]) -> Dict[str, float]:
    """Summary of non-last line widths: mean, std, range and count."""
    widths = np.array([ln.width for ln in lines[:-1]], dtype=float)
    if widths.size == 0:
        return {"count": 0, "mean": 0.0, "std": 0.0, "range": 0.0}
    return {
        "count": int(widths.size),
        "mean": round(float(widths.mean()), 3),
        "std": round(float(widths.std()), 3),
        "range": round(float(widths.max() - widths.min()), 3),
    }
