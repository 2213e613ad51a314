from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Dict, List, Optional, Tuple

_SENTENCE_END_RE = re.compile(r"[.!?][\"'”’]?$")
_TRAILING_PUNCT_RE = re.compile(r"[.!?,;:]$")
_TOKEN_RE = re.compile(r"\S+")
# Whitespace a line may break at: everything except the no-break spaces.
BREAKABLE_WS_RE = re.compile(r"[^\S\u00a0\u2007\u202f]+")


@dataclass(frozen=True)
class Token:
    """A maximal run of non-whitespace characters from the source string.

    ``start`` / ``end`` are character offsets into the string the token was
    extracted from.  Tokens are never edited; only the separators between
    them change.
    """

    index: int
    text: str
    start: int
    end: int

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def ends_sentence(self) -> bool:
        """True for ``.``, ``!`` or ``?``, optionally followed by a closing quote."""
        return bool(_SENTENCE_END_RE.search(self.text))

    @property
    def has_trailing_punct(self) -> bool:
        return bool(_TRAILING_PUNCT_RE.search(self.text))

    def is_short_word(self, words: AbstractSet[str]) -> bool:
        """Case-insensitive membership in *words*."""
        return self.text.lower() in words


def tokenize(text: str) -> List[Token]:
    """Split *text* into tokens, keeping their character offsets."""
    return [
        Token(index=i, text=m.group(), start=m.start(), end=m.end())
        for i, m in enumerate(_TOKEN_RE.finditer(text))
    ]


def is_breakable(separator: str) -> bool:
    """True when *separator* holds whitespace a line may break at."""
    return bool(BREAKABLE_WS_RE.search(separator))


@dataclass
class CharBox:
    """Rendered geometry of a single character."""

    index: int
    x0: float
    y0: float
    x1: float
    y1: float

    def width(self) -> float:
        """Horizontal extent in pixels."""
        return self.x1 - self.x0

    def height(self) -> float:
        """Vertical extent in pixels."""
        return self.y1 - self.y0

    def bbox(self) -> Tuple[float, float, float, float]:
        """Bounding box as ``(x0, y0, x1, y1)``."""
        return (self.x0, self.y0, self.x1, self.y1)


@dataclass
class Line:
    """One rendered line of a text block.

    Character offsets are half-open (``start`` .. ``end``) and cover the
    line's trailing whitespace; ``width`` does not.  Token indices are
    half-open as well and every token belongs to exactly one line.
    """

    line_id: int
    start: int
    end: int
    token_start: int = 0
    token_end: int = 0
    top: float = 0.0
    width: float = 0.0
    slots: int = 0

    @property
    def token_count(self) -> int:
        return self.token_end - self.token_start

    @property
    def char_count(self) -> int:
        return self.end - self.start

    def text(self, source: str) -> str:
        """Slice of *source* rendered on this line, without trailing whitespace."""
        return source[self.start : self.end].rstrip()

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "line_id": self.line_id,
            "start": self.start,
            "end": self.end,
            "token_start": self.token_start,
            "token_end": self.token_end,
            "top": round(self.top, 3),
            "width": round(self.width, 3),
            "slots": self.slots,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Line":
        """Deserialize from a dict produced by :meth:`to_dict`."""
        return cls(
            line_id=d["line_id"],
            start=d["start"],
            end=d["end"],
            token_start=d.get("token_start", 0),
            token_end=d.get("token_end", 0),
            top=d.get("top", 0.0),
            width=d.get("width", 0.0),
            slots=d.get("slots", 0),
        )


@dataclass
class RagPlan:
    """Per-line spacing decisions for one smoothing pass.

    ``adjustments`` maps a line id to the extra spacing (px) added at each
    slot of that line.  Lines that were considered but left alone are listed
    in ``skipped`` with the reason.
    """

    lines: List[Line] = field(default_factory=list)
    container_width: float = 0.0
    target_width: float = 0.0
    adjustments: Dict[int, float] = field(default_factory=dict)
    skipped: Dict[int, str] = field(default_factory=dict)
    merged_orphan: bool = False

    def is_empty(self) -> bool:
        return not self.adjustments

    def adjusted_width(self, line: Line) -> float:
        """Width of *line* once its adjustment is applied."""
        return line.width + self.adjustments.get(line.line_id, 0.0) * line.slots

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "container_width": round(self.container_width, 3),
            "target_width": round(self.target_width, 3),
            "merged_orphan": self.merged_orphan,
            "lines": [ln.to_dict() for ln in self.lines],
            "adjustments": {
                str(k): round(v, 3) for k, v in sorted(self.adjustments.items())
            },
            "skipped": {str(k): v for k, v in sorted(self.skipped.items())},
        }


@dataclass
class PassResult:
    """Outcome record for a single driver pass."""

    trigger: str = "initial"  # "initial" | "mutation" | "resize"
    nodes_visited: int = 0
    runs_bound: int = 0
    runs_skipped: int = 0
    blocks_smoothed: int = 0
    duration_ms: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "failed" if self.errors else "success"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize pass result to a JSON-compatible dict."""
        d: Dict[str, Any] = {
            "trigger": self.trigger,
            "status": self.status,
            "counts": {
                "nodes_visited": self.nodes_visited,
                "runs_bound": self.runs_bound,
                "runs_skipped": self.runs_skipped,
                "blocks_smoothed": self.blocks_smoothed,
            },
            "duration_ms": self.duration_ms,
        }
        if self.errors:
            d["errors"] = list(self.errors)
        return d


def line_of(lines: List[Line], token_index: int) -> Optional[Line]:
    """Return the line holding *token_index*, or None."""
    for ln in lines:
        if ln.token_start <= token_index < ln.token_end:
            return ln
    return None
