#!/usr/bin/env python3
"""Build the extended TOC for a contract and optionally store it.

Reads extracted contract text (with ``=== PAGE n ===`` markers) or
per-chunk summary records, builds and sorts the extended TOC, logs a
preview, and writes the entries as JSON. With ``--db`` the entries replace
any stored rows for ``--asset-id``.

Usage:
    python3 scripts/build_extended_toc.py --input contract.txt --preview 20
    python3 scripts/build_extended_toc.py --input chunks.jsonl --from-summaries \
      --db toc.duckdb --asset-id c320e525

Structured JSON output goes to stdout (or --output); logs go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tocmap.extended_toc import (
    ExtendedTocEntry,
    build_extended_toc,
    build_extended_toc_from_summaries,
    sort_extended_toc,
)
from tocmap.io_utils import dumps, entries_to_records, load_chunk_summaries, save_entries
from tocmap.text_normalization import normalize_contract_text
from tocmap.toc_store import TocStore

log = logging.getLogger("build_extended_toc")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a page-annotated extended TOC from contract text."
    )
    parser.add_argument(
        "--input", required=True, type=Path,
        help="Extracted contract text, or chunk summaries with --from-summaries",
    )
    parser.add_argument(
        "--from-summaries", action="store_true",
        help="Treat --input as chunk summary records (JSON array or JSONL)",
    )
    parser.add_argument(
        "--skip-normalize", action="store_true",
        help="Input text is already normalized",
    )
    parser.add_argument(
        "--output", type=Path, default=None,
        help="Write entries JSON here instead of stdout",
    )
    parser.add_argument(
        "--db", type=Path, default=None, help="DuckDB file to store entries in",
    )
    parser.add_argument(
        "--asset-id", default=None, help="Parsed asset id the entries belong to",
    )
    parser.add_argument(
        "--preview", type=int, default=20, help="Number of entries to log (default 20)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def extract_entries(
    input_path: Path,
    *,
    from_summaries: bool = False,
    skip_normalize: bool = False,
) -> list[ExtendedTocEntry]:
    """Build sorted extended TOC entries from a text or summaries file."""
    if from_summaries:
        chunks = load_chunk_summaries(input_path)
        log.info("Loaded %d chunks from %s", len(chunks), input_path)
        entries = build_extended_toc_from_summaries(chunks)
    else:
        text = input_path.read_text(encoding="utf-8")
        log.info("Read %d characters from %s", len(text), input_path)
        if not skip_normalize:
            text = normalize_contract_text(text)
        entries = build_extended_toc(text)
    return sort_extended_toc(entries)


def log_preview(entries: list[ExtendedTocEntry], limit: int) -> None:
    for index, entry in enumerate(entries[:limit], start=1):
        log.info(
            "%3d. [%-8s] %s (page %d)",
            index, entry.clause_number, entry.description[:60], entry.page_no,
        )
    if len(entries) > limit:
        log.info("... and %d more", len(entries) - limit)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.db is not None and not args.asset_id:
        parser.error("--asset-id is required with --db")
    if args.preview < 0:
        parser.error("--preview must be >= 0")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    if not args.input.exists():
        print(f"Error: input not found: {args.input}", file=sys.stderr)
        return 1

    entries = extract_entries(
        args.input,
        from_summaries=args.from_summaries,
        skip_normalize=args.skip_normalize,
    )
    log.info("Found %d clause headings", len(entries))
    log_preview(entries, args.preview)

    if args.db is not None:
        with TocStore(args.db, create_if_missing=True) as store:
            store.replace_entries(args.asset_id, entries)

    if args.output is not None:
        save_entries(entries, args.output)
        log.info("Wrote %s", args.output)
    else:
        sys.stdout.buffer.write(dumps(entries_to_records(entries)))
        sys.stdout.buffer.write(b"\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
