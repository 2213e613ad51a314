import json
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, FrozenSet, Union


class ConfigValidationError(ValueError):
    """Raised when a TypesetConfig field has an invalid value."""


def _check_range(
    name: str, value: float, lo: float, hi: float, *, inclusive: bool = True
) -> None:
    if inclusive:
        if not (lo <= value <= hi):
            raise ConfigValidationError(f"{name}={value} out of range [{lo}, {hi}]")
    else:
        if not (lo < value < hi):
            raise ConfigValidationError(f"{name}={value} out of range ({lo}, {hi})")


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name}={value} must be > 0")


def _check_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ConfigValidationError(f"{name}={value} must be >= 0")


_SCALAR_TYPES = (bool, int, float, str)


def _check_type(name: str, value: Any, expected: type) -> None:
    # bool is an int subclass; accept it only where a bool is expected.
    if expected is bool:
        ok = isinstance(value, bool)
    elif expected is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
    else:
        ok = isinstance(value, expected) and not isinstance(value, bool)
    if not ok:
        raise ConfigValidationError(
            f"{name}={value!r} must be of type {expected.__name__}"
        )


BODY_SHORT_WORDS: FrozenSet[str] = frozenset(
    {
        "a",
        "an",
        "the",
        "to",
        "in",
        "on",
        "of",
        "is",
        "it",
        "or",
        "at",
        "by",
        "if",
        "no",
        "so",
        "up",
        "as",
        "we",
        "my",
        "do",
        "be",
        "am",
    }
)

HEADING_ARTICLES: FrozenSet[str] = frozenset({"a", "an", "the"})

HEADING_PREPOSITIONS: FrozenSet[str] = frozenset(
    {"to", "in", "on", "of", "at", "by", "for", "with", "from"}
)


@dataclass
class TypesetConfig:
    """Tunables for word binding, line geometry and rag smoothing."""

    # ── Binding (body text) ────────────────────────────────────────────
    # Character substituted for a joined separator.
    joiner: str = "\u00a0"
    # Inputs shorter than this (raw characters) pass through unchanged.
    min_body_chars: int = 10
    # Inputs with fewer tokens than this pass through unchanged.
    min_tokens: int = 3
    # Longest sentence-opening word that is tied to its successor.
    sentence_start_max_len: int = 6
    # Longest punctuated word that is pulled back onto the previous word.
    trailing_punct_max_len: int = 7
    # Longest punctuated *next* word that pulls the current word forward.
    next_punct_max_len: int = 5
    # Articles, simple prepositions and conjunctions bound on both sides.
    short_words: FrozenSet[str] = field(default_factory=lambda: BODY_SHORT_WORDS)

    # ── Binding (headings) ─────────────────────────────────────────────
    min_heading_chars: int = 5
    # Headings with fewer tokens than this pass through unchanged.
    min_heading_tokens: int = 3
    heading_articles: FrozenSet[str] = field(default_factory=lambda: HEADING_ARTICLES)
    heading_prepositions: FrozenSet[str] = field(
        default_factory=lambda: HEADING_PREPOSITIONS
    )

    # ── Line geometry ──────────────────────────────────────────────────
    # Vertical offset change (px) that opens a new line; absorbs sub-pixel jitter.
    line_tolerance_px: float = 3.0
    # Line height as a multiple of (ascent + descent) for the Pillow backend.
    line_height_mult: float = 1.2

    # ── Spacing strategy ───────────────────────────────────────────────
    # Target line width as a fraction of the container width.
    target_width_fraction: float = 0.94
    # Per-slot adjustments below this magnitude are not worth applying.
    min_slot_adjust_px: float = 0.3
    # Per-slot adjustments above this look unnatural.
    max_slot_adjust_px: float = 3.0
    # Permit small negative (tightening) adjustments.
    allow_tightening: bool = False
    max_tighten_px: float = 0.5
    # A last line with at most this many tokens is merged into the one above.
    orphan_max_tokens: int = 2

    # ── Re-join strategy ───────────────────────────────────────────────
    rejoin_target_chars: int = 65

    # ── Uniform letter-spacing strategy ────────────────────────────────
    max_letter_spacing_px: float = 0.35
    # Minimum gap (px) against the widest line before a line counts.
    letter_gap_threshold_px: float = 5.0
    # Fraction of the average gap closed by letter spacing.
    letter_gap_ratio: float = 0.75
    # Letter spacing at or below this is dropped.
    min_letter_spacing_px: float = 0.02

    # ── Application driver ─────────────────────────────────────────────
    body_tags: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"p", "li", "blockquote", "figcaption"})
    )
    heading_tags: FrozenSet[str] = field(
        default_factory=lambda: frozenset({"h1", "h2", "h3", "h4"})
    )

    def __post_init__(self) -> None:
        """Validate field ranges to catch misconfiguration early."""
        # Sets may arrive as lists from JSON.
        for name in (
            "short_words",
            "heading_articles",
            "heading_prepositions",
            "body_tags",
            "heading_tags",
        ):
            value = getattr(self, name)
            if isinstance(value, str) or not isinstance(value, Iterable):
                raise ConfigValidationError(f"{name} must be a collection of strings")
            setattr(self, name, frozenset(str(v).lower() for v in value))

        # Scalars may arrive with the wrong JSON type.
        for f in fields(self):
            if f.type in _SCALAR_TYPES:
                _check_type(f.name, getattr(self, f.name), f.type)

        if len(self.joiner) != 1 or not self.joiner.isspace():
            raise ConfigValidationError(
                f"joiner={self.joiner!r} must be a single whitespace character"
            )

        # -- Fractions --
        _check_range("target_width_fraction", self.target_width_fraction, 0.5, 1.0)
        _check_range("letter_gap_ratio", self.letter_gap_ratio, 0.0, 1.0)

        # -- Strictly positive floats --
        for name in ("max_slot_adjust_px", "line_height_mult", "max_letter_spacing_px"):
            _check_positive(name, getattr(self, name))

        # -- Non-negative floats --
        for name in (
            "line_tolerance_px",
            "min_slot_adjust_px",
            "max_tighten_px",
            "letter_gap_threshold_px",
            "min_letter_spacing_px",
        ):
            _check_non_negative(name, getattr(self, name))

        # -- Positive ints --
        for name in (
            "min_tokens",
            "min_heading_tokens",
            "sentence_start_max_len",
            "trailing_punct_max_len",
            "next_punct_max_len",
            "orphan_max_tokens",
            "rejoin_target_chars",
        ):
            val = getattr(self, name)
            if val < 1:
                raise ConfigValidationError(f"{name}={val} must be >= 1")

        for name in ("min_body_chars", "min_heading_chars"):
            _check_non_negative(name, getattr(self, name))

        # -- Band ordering --
        if self.min_slot_adjust_px >= self.max_slot_adjust_px:
            raise ConfigValidationError(
                f"min_slot_adjust_px ({self.min_slot_adjust_px}) must be < "
                f"max_slot_adjust_px ({self.max_slot_adjust_px})"
            )


def load_config(path: Union[str, Path]) -> TypesetConfig:
    """Build a :class:`TypesetConfig` from a JSON file of overrides.

    Keys absent from the file keep their defaults.  Unknown keys are
    rejected so that typos do not silently fall back to defaults.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the file is not valid JSON or its root is not an object.
    ConfigValidationError
        For unknown keys, values of the wrong type or out-of-range values.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Error decoding JSON from {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object.")

    known = {f.name for f in fields(TypesetConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigValidationError(f"Unknown config keys in {path}: {unknown}")

    return TypesetConfig(**data)
