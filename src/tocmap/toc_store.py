"""DuckDB store for extended TOC entries.

One row per ``(parsed_asset_id, clause_number)``. Rows carry an explicit
``order_index`` so the hierarchical order computed by
:func:`tocmap.extended_toc.sort_extended_toc` survives a plain
``ORDER BY``.

Tables:
    extended_toc    — clause headings per parsed contract asset
    _schema_version — schema version tracking
"""
from __future__ import annotations

import contextlib
import importlib
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tocmap.extended_toc import ExtendedTocEntry, sort_extended_toc

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"
_SCHEMA_KEY = "extended_toc"

_SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL
);

CREATE TABLE IF NOT EXISTS extended_toc (
    id VARCHAR PRIMARY KEY,
    parsed_asset_id VARCHAR NOT NULL,
    clause_number VARCHAR NOT NULL,
    description VARCHAR NOT NULL,
    page_no INTEGER NOT NULL,
    order_index INTEGER NOT NULL,
    created_at TIMESTAMP DEFAULT current_timestamp,
    UNIQUE (parsed_asset_id, clause_number)
);
"""

_SELECT_COLUMNS = (
    "parsed_asset_id, clause_number, description, page_no, order_index, created_at"
)


class SchemaVersionError(RuntimeError):
    """Raised when a TOC store schema version does not match expected."""


@dataclass(frozen=True, slots=True)
class StoredTocEntry:
    """An extended TOC row as persisted for a parsed asset."""

    parsed_asset_id: str
    clause_number: str
    description: str
    page_no: int
    order_index: int
    created_at: str | None

    def to_entry(self) -> ExtendedTocEntry:
        return ExtendedTocEntry(self.clause_number, self.description, self.page_no)


def _row_to_entry(row: tuple[Any, ...]) -> StoredTocEntry:
    created_at = row[5]
    return StoredTocEntry(
        parsed_asset_id=str(row[0]),
        clause_number=str(row[1]),
        description=str(row[2]),
        page_no=int(row[3]),
        order_index=int(row[4]),
        created_at=created_at.isoformat() if created_at is not None else None,
    )


class TocStore:
    """Read/write interface to an extended TOC DuckDB file."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        create_if_missing: bool = False,
    ) -> None:
        self._db_path = Path(db_path)
        if not self._db_path.exists() and not create_if_missing:
            raise FileNotFoundError(f"TOC database not found: {self._db_path}")

        self._conn: Any = _duckdb_mod.connect(str(self._db_path))
        try:
            self._create_schema()
        except Exception:
            self._conn.close()
            raise

    def _create_schema(self) -> None:
        for stmt in _SCHEMA_DDL.split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)

        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = ?",
            [_SCHEMA_KEY],
        ).fetchone()
        if row is None:
            self._conn.execute(
                "INSERT INTO _schema_version (table_name, version) VALUES (?, ?)",
                [_SCHEMA_KEY, SCHEMA_VERSION],
            )
        elif str(row[0]) != SCHEMA_VERSION:
            raise SchemaVersionError(
                f"Schema version mismatch in {self._db_path}: "
                f"expected {SCHEMA_VERSION}, got {row[0]}"
            )

    def close(self) -> None:
        """Close the DuckDB connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> TocStore:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    @property
    def schema_version(self) -> str:
        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = ?",
            [_SCHEMA_KEY],
        ).fetchone()
        return str(row[0]) if row else "unknown"

    # ── writes ────────────────────────────────────────────────────────

    def replace_entries(
        self,
        parsed_asset_id: str,
        entries: Iterable[ExtendedTocEntry],
    ) -> int:
        """Replace all entries for an asset with ``entries`` in sorted order.

        Duplicate clause numbers keep their first occurrence. Returns the
        number of rows written.
        """
        unique: list[ExtendedTocEntry] = []
        seen: set[str] = set()
        for entry in entries:
            if entry.clause_number in seen:
                continue
            seen.add(entry.clause_number)
            unique.append(entry)
        ordered = sort_extended_toc(unique)

        self._conn.execute("BEGIN TRANSACTION")
        try:
            deleted = self.delete_asset(parsed_asset_id)
            if ordered:
                self._conn.executemany(
                    """
                    INSERT INTO extended_toc
                    (id, parsed_asset_id, clause_number, description, page_no, order_index)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        [
                            str(uuid.uuid4()),
                            parsed_asset_id,
                            entry.clause_number,
                            entry.description,
                            entry.page_no,
                            index,
                        ]
                        for index, entry in enumerate(ordered)
                    ],
                )
            self._conn.execute("COMMIT")
        except Exception:
            with contextlib.suppress(Exception):
                self._conn.execute("ROLLBACK")
            raise
        logger.info(
            "Stored %d extended TOC entries for %s (replaced %d)",
            len(ordered), parsed_asset_id, deleted,
        )
        return len(ordered)

    def delete_asset(self, parsed_asset_id: str) -> int:
        """Delete every entry for an asset. Returns the number removed."""
        existing = self.count(parsed_asset_id)
        if existing:
            self._conn.execute(
                "DELETE FROM extended_toc WHERE parsed_asset_id = ?",
                [parsed_asset_id],
            )
        return existing

    # ── reads ─────────────────────────────────────────────────────────

    def count(self, parsed_asset_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM extended_toc WHERE parsed_asset_id = ?",
            [parsed_asset_id],
        ).fetchone()
        return int(row[0]) if row else 0

    def get_entries(self, parsed_asset_id: str) -> list[StoredTocEntry]:
        """All entries for an asset in stored hierarchical order."""
        rows = self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM extended_toc "
            "WHERE parsed_asset_id = ? ORDER BY order_index",
            [parsed_asset_id],
        ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def get_entry(self, parsed_asset_id: str, clause_number: str) -> StoredTocEntry | None:
        row = self._conn.execute(
            f"SELECT {_SELECT_COLUMNS} FROM extended_toc "
            "WHERE parsed_asset_id = ? AND clause_number = ?",
            [parsed_asset_id, clause_number],
        ).fetchone()
        return _row_to_entry(row) if row else None

    def clause_map(self, parsed_asset_id: str) -> dict[str, str]:
        """``{clause_number: description}`` for tooltip lookups."""
        return {
            e.clause_number: e.description for e in self.get_entries(parsed_asset_id)
        }

    def asset_ids(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT DISTINCT parsed_asset_id FROM extended_toc ORDER BY parsed_asset_id"
        ).fetchall()
        return [str(r[0]) for r in rows]
