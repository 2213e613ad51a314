"""Heading binding: tie articles and short prepositions to the next word.

Headings are short, phrase-driven strings.  Orphan and sentence rules would
over-constrain them, so only the weakest joins are made and only forward.
"""

from __future__ import annotations

import logging
from typing import Optional, Set

from .binding import join_gaps
from .config import TypesetConfig
from .models import tokenize

logger = logging.getLogger(__name__)


def bind_heading(text: str, cfg: Optional[TypesetConfig] = None) -> str:
    """Join each heading article / short preposition to its successor."""
    if cfg is None:
        cfg = TypesetConfig()
    if not text or len(text) < cfg.min_heading_chars:
        return text
    tokens = tokenize(text)
    if len(tokens) < max(cfg.min_heading_tokens, 2):
        return text

    binders = cfg.heading_articles | cfg.heading_prepositions
    gaps: Set[int] = set()
    i = 0
    while i < len(tokens) - 1:
        if tokens[i].is_short_word(binders):
            gaps.add(i)
            i += 2
            continue
        i += 1

    logger.debug("bind_heading: %d tokens, joined gaps %s", len(tokens), sorted(gaps))
    return join_gaps(text, tokens, gaps, cfg.joiner)
