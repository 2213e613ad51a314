"""Application driver: apply the binding rules across a tree of text nodes.

The driver walks a :class:`TextNode` tree, picks body or heading rules for
each text run from the nearest tagged ancestor, and writes the result back.
Each run keeps its unjoined source text alongside the rendered text, so a
later pass starts from the source again instead of stacking joins on top of
its own output.  A run whose text was changed by someone else adopts the new
text as its source.

Triggers are coalesced: any number of :meth:`TypesetDriver.notify_mutation`
/ :meth:`TypesetDriver.notify_resize` calls lead to one fresh pass on the
next :meth:`TypesetDriver.flush`.  A failure on one run or block is logged
and recorded in the :class:`PassResult`; the rest of the pass continues.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Set, Tuple

from .binding import typeset_text
from .config import TypesetConfig
from .geometry.block import TextBlock
from .models import PassResult
from .smoothing import smooth_block

logger = logging.getLogger(__name__)


@dataclass
class TextNode:
    """An element with an optional text run and child elements."""

    tag: str = ""
    text: str = ""
    children: List["TextNode"] = field(default_factory=list)
    # Unjoined text the current ``text`` was derived from.
    source: Optional[str] = None
    # What the driver last wrote into ``text``.
    rendered: Optional[str] = None

    def walk(self) -> Iterator["TextNode"]:
        """Yield this node and its descendants depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()


def _role_for(tag: str, inherited: Optional[str], cfg: TypesetConfig) -> Optional[str]:
    tag = tag.lower()
    if tag in cfg.heading_tags:
        return "heading"
    if tag in cfg.body_tags:
        return "body"
    return inherited


def _iter_runs(
    node: TextNode, cfg: TypesetConfig, inherited: Optional[str] = None
) -> Iterator[Tuple[TextNode, Optional[str]]]:
    role = _role_for(node.tag, inherited, cfg)
    yield node, role
    for child in node.children:
        yield from _iter_runs(child, cfg, role)


def bind_run(node: TextNode, role: str, cfg: TypesetConfig) -> bool:
    """Rebind one text run from its source.  Returns False when skipped."""
    if node.rendered is None or node.text != node.rendered:
        node.source = node.text
    source = node.source or ""

    stripped = source.strip()
    min_chars = cfg.min_body_chars if role == "body" else cfg.min_heading_chars
    if len(stripped) < min_chars:
        node.text = source
        node.rendered = node.text
        return False

    lead = source[: len(source) - len(source.lstrip())]
    trail = source[len(source.rstrip()) :]
    node.text = lead + typeset_text(stripped, role, cfg) + trail
    node.rendered = node.text
    return True


class TypesetDriver:
    """Keeps a node tree (and optional rendered blocks) typeset.

    Parameters
    ----------
    root:
        Root of the text-node tree.
    cfg:
        Tunables; defaults to :class:`TypesetConfig`.
    """

    def __init__(self, root: TextNode, cfg: Optional[TypesetConfig] = None) -> None:
        self.root = root
        self.cfg = cfg or TypesetConfig()
        self._blocks: List[TextBlock] = []
        self._pending: Set[str] = set()

    @property
    def pending(self) -> bool:
        return bool(self._pending)

    def register_block(self, block: TextBlock) -> None:
        """Track a rendered block for rag smoothing on resize."""
        self._blocks.append(block)
        self._pending.add("resize")

    def unregister_block(self, block: TextBlock) -> None:
        """Stop tracking *block* and drop its spacing corrections."""
        try:
            self._blocks.remove(block)
        except ValueError:
            return
        block.reset_spacing()

    def close(self) -> None:
        """Detach every tracked block and discard pending notifications."""
        for block in list(self._blocks):
            self.unregister_block(block)
        self._pending.clear()

    def notify_mutation(self) -> None:
        """Content changed; rebind and re-smooth on the next flush."""
        self._pending.add("mutation")

    def notify_resize(self) -> None:
        """Container width changed; re-smooth on the next flush."""
        self._pending.add("resize")

    def flush(self) -> Optional[PassResult]:
        """Run one pass for all pending notifications, if any."""
        if not self._pending:
            return None
        trigger = "mutation" if "mutation" in self._pending else "resize"
        self._pending.clear()
        return self.run(trigger=trigger)

    def run(self, trigger: str = "initial") -> PassResult:
        """Run a full, independent pass.

        ``initial`` and ``mutation`` passes rebind text runs and re-smooth
        blocks; ``resize`` passes only re-smooth blocks.
        """
        result = PassResult(trigger=trigger)
        t0 = time.perf_counter()

        if trigger != "resize":
            self._bind_tree(result)
        self._smooth_blocks(result)

        result.duration_ms = int((time.perf_counter() - t0) * 1000)
        logger.info(
            "typeset pass (%s): %d nodes, %d bound, %d skipped, %d blocks smoothed, %d errors",
            trigger,
            result.nodes_visited,
            result.runs_bound,
            result.runs_skipped,
            result.blocks_smoothed,
            len(result.errors),
        )
        return result

    def _bind_tree(self, result: PassResult) -> None:
        for node, role in _iter_runs(self.root, self.cfg):
            result.nodes_visited += 1
            if role is None or not node.text:
                continue
            try:
                if bind_run(node, role, self.cfg):
                    result.runs_bound += 1
                else:
                    result.runs_skipped += 1
            except Exception as exc:
                logger.warning("typeset failed on <%s> run: %s", node.tag, exc)
                result.errors.append(
                    {"where": f"<{node.tag}>", "type": type(exc).__name__, "message": str(exc)}
                )

    def _smooth_blocks(self, result: PassResult) -> None:
        for idx, block in enumerate(self._blocks):
            try:
                plan = smooth_block(block, self.cfg)
            except Exception as exc:
                logger.warning("rag smoothing failed on block %d: %s", idx, exc)
                result.errors.append(
                    {"where": f"block {idx}", "type": type(exc).__name__, "message": str(exc)}
                )
                continue
            if plan.adjustments:
                result.blocks_smoothed += 1


def typeset_tree(root: TextNode, cfg: Optional[TypesetConfig] = None) -> PassResult:
    """One eager pass over *root*."""
    return TypesetDriver(root, cfg).run()
