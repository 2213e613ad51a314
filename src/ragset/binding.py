"""Body-text binding rules: decide which word gaps must never break.

The engine works on the token sequence of a plain-text string and emits the
same string with selected separators replaced by a non-breaking joiner.
Rules are evaluated left to right; the first rule that fires for a token
wins and a token consumed by a rule is not looked at again:

* **Sentence start**: a short word opening a sentence is tied to the word
  after it.
* **Trailing punctuation**: a short punctuated word is tied to the word
  before it; a word followed by a short punctuated word is tied to it.
* **Short words**: articles, simple prepositions and conjunctions are tied
  to both neighbours.

The last two tokens are always joined after the pass (no orphans).

Public API
----------
* ``bind(text, cfg)``           : body rules
* ``typeset_text(text, mode)``  : body / heading dispatch
* ``join_gaps(text, tokens, gaps, joiner)``: rebuild a string from gap joins
"""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Optional, Set

from .config import TypesetConfig
from .models import Token, tokenize

logger = logging.getLogger(__name__)


def join_gaps(
    text: str, tokens: List[Token], gaps: AbstractSet[int], joiner: str
) -> str:
    """Rebuild *text* with the separators of *gaps* replaced by *joiner*.

    Gap ``k`` is the separator between ``tokens[k]`` and ``tokens[k + 1]``.
    Separators of gaps that are not joined are copied verbatim, as are any
    leading and trailing whitespace.
    """
    if not tokens or not gaps:
        return text
    parts = [text[: tokens[0].start]]
    for k, tok in enumerate(tokens):
        parts.append(tok.text)
        if k + 1 < len(tokens):
            if k in gaps:
                parts.append(joiner)
            else:
                parts.append(text[tok.end : tokens[k + 1].start])
    parts.append(text[tokens[-1].end :])
    return "".join(parts)


def _body_gaps(tokens: List[Token], cfg: TypesetConfig) -> Set[int]:
    """Return the set of gap indices the body rules join."""
    n = len(tokens)
    gaps: Set[int] = set()

    # Tokens n-2 and n-1 are settled by the no-orphan override below.
    i = 0
    while i < n - 2:
        tok = tokens[i]
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1]

        # Sentence start
        if (
            prev is not None
            and prev.ends_sentence
            and not tok.ends_sentence
            and tok.length <= cfg.sentence_start_max_len
        ):
            gaps.add(i)
            i += 2
            continue

        # Trailing punctuation: pull a short punctuated word back
        if tok.has_trailing_punct and tok.length <= cfg.trailing_punct_max_len and i > 0:
            gaps.add(i - 1)
            i += 1
            continue

        # ...or pull this word forward onto a short punctuated successor
        if nxt.has_trailing_punct and nxt.length <= cfg.next_punct_max_len:
            gaps.add(i)
            i += 2
            continue

        # Short words bind on both sides
        if tok.is_short_word(cfg.short_words) and not tok.has_trailing_punct:
            if i > 0:
                gaps.add(i - 1)
            gaps.add(i)
            i += 2
            continue

        i += 1

    # No orphans: final say over the last gap.
    gaps.add(n - 2)
    return gaps


def bind(text: str, cfg: Optional[TypesetConfig] = None) -> str:
    """Apply the body binding rules to *text*.

    Inputs shorter than ``cfg.min_body_chars`` or with fewer than
    ``cfg.min_tokens`` tokens are returned unchanged.  Because the joiner is
    itself whitespace, ``bind(bind(t)) == bind(t)``.
    """
    if cfg is None:
        cfg = TypesetConfig()
    if not text or len(text) < cfg.min_body_chars:
        return text
    tokens = tokenize(text)
    if len(tokens) < max(cfg.min_tokens, 2):
        return text

    gaps = _body_gaps(tokens, cfg)
    logger.debug("bind: %d tokens, joined gaps %s", len(tokens), sorted(gaps))
    return join_gaps(text, tokens, gaps, cfg.joiner)


def typeset_text(
    text: str, mode: str = "body", cfg: Optional[TypesetConfig] = None
) -> str:
    """Dispatch *text* to the body or heading rules."""
    if mode == "body":
        return bind(text, cfg)
    if mode == "heading":
        from .heading import bind_heading

        return bind_heading(text, cfg)
    raise ValueError(f"mode={mode!r} must be 'body' or 'heading'")
