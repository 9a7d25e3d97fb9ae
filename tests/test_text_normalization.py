"""Tests for tocmap.text_normalization."""
from __future__ import annotations

from tocmap.extended_toc import ExtendedTocEntry, build_extended_toc
from tocmap.text_normalization import (
    insert_page_markers,
    normalize_contract_text,
    page_marker,
    page_number_at,
)


RAW_EXTRACT = (
    "=== PAGE 1 ===\n"
    "1 Definitions\n"
    "In this Contract the\n"
    "following words apply.\n"
    "\n"
    "1.1 Interpretation\r\n"
    "=== PAGE 2 ===\n"
    "   2 Works   \n"
    "The Contractor must carry out\n"
    "the Works.\n"
)


class TestNormalizeContractText:
    def test_reflows_paragraphs(self) -> None:
        assert normalize_contract_text(RAW_EXTRACT) == (
            "=== PAGE 1 ===\n"
            "1 Definitions In this Contract the following words apply.\n"
            "1.1 Interpretation\n"
            "=== PAGE 2 ===\n"
            "2 Works The Contractor must carry out the Works."
        )

    def test_clause_line_starts_new_paragraph(self) -> None:
        text = "Preamble text\n2.3) Notices\ncontinued"
        assert normalize_contract_text(text) == "Preamble text\n2.3) Notices continued"

    def test_number_inside_word_does_not_split(self) -> None:
        text = "Section\n12abc continues"
        assert normalize_contract_text(text) == "Section 12abc continues"

    def test_empty(self) -> None:
        assert normalize_contract_text("") == ""

    def test_feeds_extended_toc(self) -> None:
        text = normalize_contract_text(
            "=== PAGE 1 ===\n1.1 Interpretation\n\n=== PAGE 2 ===\n2 Works\n"
        )
        assert build_extended_toc(text) == [
            ExtendedTocEntry("1.1", "Interpretation", 1),
            ExtendedTocEntry("2", "Works", 2),
        ]


class TestPageMarkers:
    def test_page_marker(self) -> None:
        assert page_marker(7) == "=== PAGE 7 ==="

    def test_insert_page_markers(self) -> None:
        assert insert_page_markers(["alpha", "beta"]) == (
            "=== PAGE 1 ===\nalpha\n=== PAGE 2 ===\nbeta"
        )

    def test_insert_no_pages(self) -> None:
        assert insert_page_markers([]) == ""


class TestPageNumberAt:
    TEXT = "=== PAGE 1 ===\nA\n=== PAGE 2 ===\nB"

    def test_before_any_marker(self) -> None:
        assert page_number_at(self.TEXT, 0) == 1

    def test_first_page(self) -> None:
        assert page_number_at(self.TEXT, self.TEXT.index("A")) == 1

    def test_second_page(self) -> None:
        assert page_number_at(self.TEXT, self.TEXT.index("B")) == 2

    def test_no_markers(self) -> None:
        assert page_number_at("plain text", 5) == 1
