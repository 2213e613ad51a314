"""
Typeset a paragraph from the command line and optionally preview its rag.
Usage:
    python scripts/run_typeset.py input.txt --mode body|heading|rejoin --width 360 --font Georgia.ttf --font-size 18 --report out.json
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from ragset import (
    PillowTextBlock,
    TypesetConfig,
    bind,
    bind_heading,
    load_config,
    load_font,
    rag_stats,
    read_lines,
    rejoin_by_budget,
    smooth_block,
)

JOIN_MARK = "·"


def read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def transform(text: str, mode: str, cfg: TypesetConfig, target_chars: int | None) -> str:
    if mode == "heading":
        return bind_heading(text, cfg)
    if mode == "rejoin":
        return rejoin_by_budget(text, target_chars, cfg)
    return bind(text, cfg)


def print_lines(label: str, block: PillowTextBlock, cfg: TypesetConfig, mark: bool) -> list:
    lines = read_lines(block, cfg)
    print(f"{label}: {len(lines)} lines, stats={rag_stats(lines)}")
    for ln in lines:
        text = ln.text(block.text)
        if mark:
            text = text.replace(cfg.joiner, JOIN_MARK)
        print(f"  [{ln.line_id:2d}] {ln.width:7.1f}px slots={ln.slots:2d}  {text}")
    return lines


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Apply word binding (and optional rag smoothing) to a text file"
    )
    parser.add_argument("input", help="Text file to process, or - for stdin")
    parser.add_argument(
        "--mode",
        choices=["body", "heading", "rejoin"],
        default="body",
        help="Binding rules to apply",
    )
    parser.add_argument(
        "--target-chars",
        type=int,
        default=None,
        help="Character budget for --mode rejoin (default from config)",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="JSON file with TypesetConfig overrides"
    )
    parser.add_argument(
        "--width", type=float, default=None, help="Lay out at this width (px) and smooth"
    )
    parser.add_argument("--font", type=str, default=None, help="TrueType font file")
    parser.add_argument("--font-size", type=int, default=18, help="Font size (px)")
    parser.add_argument(
        "--mark-joins",
        action="store_true",
        help=f"Show non-breaking joins as '{JOIN_MARK}' in the output",
    )
    parser.add_argument(
        "--report", type=Path, default=None, help="Write a JSON report to this path"
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args.config) if args.config else TypesetConfig()
        source = read_input(args.input).strip()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    result = transform(source, args.mode, cfg, args.target_chars)
    shown = result.replace(cfg.joiner, JOIN_MARK) if args.mark_joins else result
    print(shown)

    report = {
        "created_at": datetime.now().isoformat(),
        "input": args.input,
        "mode": args.mode,
        "settings": {k: sorted(v) if isinstance(v, frozenset) else v for k, v in vars(cfg).items()},
        "output": result,
        "joins": result.count(cfg.joiner) - source.count(cfg.joiner),
    }

    if args.width is not None:
        font = load_font(args.font, args.font_size)
        before = PillowTextBlock(source, font, args.width, cfg=cfg)
        after = PillowTextBlock(result, font, args.width, cfg=cfg)
        print()
        before_lines = print_lines("before", before, cfg, args.mark_joins)
        after_lines = print_lines("after", after, cfg, args.mark_joins)
        plan = smooth_block(after, cfg)
        print(f"spacing plan: target={plan.target_width:.1f}px")
        for line_id, px in sorted(plan.adjustments.items()):
            print(f"  line {line_id}: +{px:.3f}px per slot")
        for line_id, reason in sorted(plan.skipped.items()):
            print(f"  line {line_id}: skipped ({reason})")
        report["layout"] = {
            "width": args.width,
            "font": args.font,
            "font_size": args.font_size,
            "before": [ln.to_dict() for ln in before_lines],
            "after": [ln.to_dict() for ln in after_lines],
            "stats_before": rag_stats(before_lines),
            "stats_after": rag_stats(after_lines),
            "plan": plan.to_dict(),
        }

    if args.report:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        args.report.write_text(json.dumps(report, indent=2, ensure_ascii=False))
        print(f"Report: {args.report}")


if __name__ == "__main__":
    main()
