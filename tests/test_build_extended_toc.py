"""Tests for scripts/build_extended_toc.py."""
from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from scripts.build_extended_toc import extract_entries, main
from tocmap.extended_toc import ExtendedTocEntry
from tocmap.toc_store import TocStore


RAW_CONTRACT = (
    "=== PAGE 1 ===\n"
    "1.10 Subcontracting\n"
    "\n"
    "1 Definitions\n"
    "=== PAGE 2 ===\n"
    "1.2 Interpretation\n"
)


@pytest.fixture()
def contract_path(tmp_path: Path) -> Path:
    path = tmp_path / "contract.txt"
    path.write_text(RAW_CONTRACT, encoding="utf-8")
    return path


class TestExtractEntries:
    def test_text_input_sorted(self, contract_path: Path) -> None:
        assert extract_entries(contract_path) == [
            ExtendedTocEntry("1", "Definitions", 1),
            ExtendedTocEntry("1.2", "Interpretation", 2),
            ExtendedTocEntry("1.10", "Subcontracting", 1),
        ]

    def test_summaries_input(self, tmp_path: Path) -> None:
        path = tmp_path / "chunks.jsonl"
        lines = [
            {"chunk_index": 1, "start_page": 3, "summary_json": {"summaries": [
                {"clause_number": "2", "heading": "The Works"},
            ]}},
            {"chunk_index": 0, "start_page": 1, "summary_json": {"summaries": [
                {"clause_number": "1", "heading": "Definitions"},
            ]}},
        ]
        path.write_bytes(b"\n".join(orjson.dumps(line) for line in lines))
        assert extract_entries(path, from_summaries=True) == [
            ExtendedTocEntry("1", "Definitions", 1),
            ExtendedTocEntry("2", "The Works", 3),
        ]


class TestMain:
    def test_writes_output_and_db(self, contract_path: Path, tmp_path: Path) -> None:
        output = tmp_path / "out" / "toc.json"
        db_path = tmp_path / "toc.duckdb"
        rc = main([
            "--input", str(contract_path),
            "--output", str(output),
            "--db", str(db_path),
            "--asset-id", "asset-1",
            "--preview", "1",
        ])
        assert rc == 0
        records = orjson.loads(output.read_bytes())
        assert [r["clause_number"] for r in records] == ["1", "1.2", "1.10"]
        with TocStore(db_path) as store:
            assert store.count("asset-1") == 3

    def test_stdout_output(
        self, contract_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--input", str(contract_path)]) == 0
        records = orjson.loads(capsys.readouterr().out)
        assert records[0] == {"clause_number": "1", "description": "Definitions", "page_no": 1}

    def test_missing_input(self, tmp_path: Path) -> None:
        assert main(["--input", str(tmp_path / "missing.txt")]) == 1

    def test_db_requires_asset_id(self, contract_path: Path, tmp_path: Path) -> None:
        with pytest.raises(SystemExit):
            main(["--input", str(contract_path), "--db", str(tmp_path / "toc.duckdb")])
