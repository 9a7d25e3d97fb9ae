#!/usr/bin/env python3
"""Show how a TOC block and a piece of text resolve against each other.

Parses the TOC into a clause map, then reports every clause-number match
in the text with whether it is a valid number, whether the TOC heads it,
and the closest headed ancestor when it does not.

Usage:
    python3 scripts/toc_debug.py --toc toc.txt --text answer.txt
    python3 scripts/toc_debug.py --toc toc.txt --text-inline "See 2.1(a)(ii)."

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import orjson

from tocmap.toc_parser import find_best_clause_match, parse_toc, scan_references


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Debug clause detection for a TOC against sample text."
    )
    parser.add_argument(
        "--toc", required=True, type=Path, help="Path to a text file holding the TOC block"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", type=Path, help="Path to the text to scan")
    source.add_argument("--text-inline", help="Text to scan, given on the command line")
    return parser


def debug_report(toc_text: str, text: str) -> dict[str, Any]:
    """Build the JSON report for ``text`` scanned against ``toc_text``."""
    clause_map = parse_toc(toc_text)
    references: list[dict[str, Any]] = []
    for hit in scan_references(text, clause_map):
        best = find_best_clause_match(hit.match, clause_map)
        references.append(
            {
                "match": hit.match,
                "is_valid": hit.is_valid,
                "in_toc": hit.in_toc,
                "heading": hit.heading,
                "resolved_number": best.number if best else None,
                "resolved_heading": best.heading if best else None,
            }
        )
    return {
        "clause_count": len(clause_map),
        "clauses": [
            {"number": number, "heading": heading}
            for number, heading in clause_map.items()
        ],
        "references": references,
    }


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.toc.exists():
        print(f"Error: TOC file not found: {args.toc}", file=sys.stderr)
        return 1
    if args.text is not None and not args.text.exists():
        print(f"Error: text file not found: {args.text}", file=sys.stderr)
        return 1

    toc_text = args.toc.read_text(encoding="utf-8")
    text = args.text.read_text(encoding="utf-8") if args.text else args.text_inline

    report = debug_report(toc_text, text)
    print(
        f"TOC loaded: {report['clause_count']} clauses; "
        f"{len(report['references'])} references detected",
        file=sys.stderr,
    )
    dump_json(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
