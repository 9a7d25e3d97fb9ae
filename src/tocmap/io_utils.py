"""JSON I/O for TOC inputs and extended TOC outputs (orjson-backed)."""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson

from tocmap.extended_toc import ExtendedTocEntry


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def dumps(obj: Any, *, pretty: bool = True) -> bytes:
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(obj, option=option)


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps(obj, pretty=pretty) + b"\n")


def load_chunk_summaries(path: Path) -> list[dict[str, Any]]:
    """Load per-chunk summary records from ``.jsonl`` or a JSON array file.

    A JSON object with a ``chunks`` key is also accepted. Records are
    returned in ``chunk_index`` order when that field is present.
    """
    if path.suffix == ".jsonl":
        chunks = load_jsonl(path)
    else:
        payload = load_json(path)
        if isinstance(payload, dict):
            payload = payload.get("chunks") or []
        chunks = [c for c in payload if isinstance(c, dict)]
    if all("chunk_index" in c for c in chunks):
        chunks.sort(key=lambda c: int(c["chunk_index"]))
    return chunks


def entries_to_records(entries: Iterable[ExtendedTocEntry]) -> list[dict[str, Any]]:
    return [e.to_dict() for e in entries]


def save_entries(entries: Iterable[ExtendedTocEntry], path: Path) -> None:
    """Write entries as a JSON array of ``{clause_number, description, page_no}``."""
    save_json(entries_to_records(entries), path)
