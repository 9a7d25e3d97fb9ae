"""Tests for tocmap.toc_parser — TOC parsing and reference resolution."""
from __future__ import annotations

from tocmap.toc_parser import (
    ClauseMapping,
    ReferenceHit,
    find_best_clause_match,
    find_clause_references,
    iter_parent_candidates,
    parse_toc,
    parse_toc_line,
    scan_references,
)


SAMPLE_TOC = """
TABLE OF CONTENTS

1        Definitions and Interpretation ............ 3
  1.1    Definitions .............................. 3
  1.2    Interpretation ........................... 7
2        The Works ................................ 9
  2.1A   Subsection with letter
  25.1(b)  Performance Bond
7.4.2(c)(ii)  Complex nested clause
GC-1.1   General Conditions 14
Page 2 of 40
"""


class TestParseTocLine:
    def test_dot_leader_line(self) -> None:
        assert parse_toc_line("1.2.3  General Conditions ............ 45") == ClauseMapping(
            "1.2.3", "General Conditions"
        )

    def test_non_clause_line(self) -> None:
        assert parse_toc_line("TABLE OF CONTENTS") is None


class TestParseToc:
    def test_single_line_with_leader(self) -> None:
        assert parse_toc("1.2.3  General Conditions ............ 45") == {
            "1.2.3": "General Conditions"
        }

    def test_parenthetical(self) -> None:
        assert parse_toc("25.1(b)  Subsection with parenthetical") == {
            "25.1(b)": "Subsection with parenthetical"
        }

    def test_sample_block(self) -> None:
        clause_map = parse_toc(SAMPLE_TOC)
        assert clause_map == {
            "1": "Definitions and Interpretation",
            "1.1": "Definitions",
            "1.2": "Interpretation",
            "2": "The Works",
            "2.1A": "Subsection with letter",
            "25.1(b)": "Performance Bond",
            "7.4.2(c)(ii)": "Complex nested clause",
            "GC-1.1": "General Conditions",
        }

    def test_empty_input(self) -> None:
        assert parse_toc("") == {}

    def test_unparseable_lines_skipped(self) -> None:
        assert parse_toc("Contents\n\nforeword text\n") == {}

    def test_last_duplicate_wins(self) -> None:
        text = "3.1  Payment Claims\n3.1  Payment Schedules"
        assert parse_toc(text) == {"3.1": "Payment Schedules"}

    def test_no_empty_keys_or_headings(self) -> None:
        clause_map = parse_toc(SAMPLE_TOC + "\n4.1   ........ 12\n")
        assert "4.1" not in clause_map
        assert all(k and v for k, v in clause_map.items())

    def test_repeatable(self) -> None:
        assert parse_toc(SAMPLE_TOC) == parse_toc(SAMPLE_TOC)

    def test_crlf_lines(self) -> None:
        assert parse_toc("1.1  Definitions\r\n1.2  Interpretation\r\n") == {
            "1.1": "Definitions",
            "1.2": "Interpretation",
        }


CLAUSE_MAP = {"2.1": "Notices", "3.4": "Payment", "5": "Insurance"}


class TestFindClauseReferences:
    def test_first_seen_order_and_dedup(self) -> None:
        text = "Refer to 3.4 and 2.1, then 3.4 again; see 9.9."
        assert find_clause_references(text, CLAUSE_MAP) == ["3.4", "2.1"]

    def test_only_known_numbers(self) -> None:
        assert find_clause_references("see 8.8 and 9.1", CLAUSE_MAP) == []

    def test_exact_match_only(self) -> None:
        # The whole token "2.1(a)" is matched, and it is not in the map.
        assert find_clause_references("per 2.1(a)", CLAUSE_MAP) == []

    def test_inside_parentheses(self) -> None:
        assert find_clause_references("(see 2.1)", CLAUSE_MAP) == ["2.1"]

    def test_not_part_of_larger_token(self) -> None:
        assert find_clause_references("x2.1y", CLAUSE_MAP) == []

    def test_empty_map(self) -> None:
        assert find_clause_references("2.1 and 3.4", {}) == []


class TestScanReferences:
    def test_reports_every_match(self) -> None:
        hits = scan_references("2.1 and 9.9 and 2.1", {"2.1": "Notices"})
        assert hits == [
            ReferenceHit("2.1", True, True, "Notices"),
            ReferenceHit("9.9", True, False, None),
            ReferenceHit("2.1", True, True, "Notices"),
        ]

    def test_no_matches(self) -> None:
        assert scan_references("nothing numbered here", CLAUSE_MAP) == []


class TestIterParentCandidates:
    def test_parentheticals_then_segments(self) -> None:
        assert list(iter_parent_candidates("2.1(a)(ii)")) == ["2.1(a)", "2.1", "2"]

    def test_dot_segments(self) -> None:
        assert list(iter_parent_candidates("2.1.3")) == ["2.1", "2"]

    def test_hyphen_code(self) -> None:
        assert list(iter_parent_candidates("GC-1.2")) == ["GC.1", "GC", "GC-1"]

    def test_top_level_has_no_parents(self) -> None:
        assert list(iter_parent_candidates("7")) == []


class TestFindBestClauseMatch:
    def test_exact(self) -> None:
        assert find_best_clause_match("3.4", CLAUSE_MAP) == ClauseMapping("3.4", "Payment")

    def test_parenthetical_fallback(self) -> None:
        result = find_best_clause_match("2.1(a)(ii)", {"2.1": "Notices"})
        assert result == ClauseMapping(number="2.1", heading="Notices")

    def test_closest_parenthetical_preferred(self) -> None:
        clause_map = {"2.1": "Notices", "2.1(a)": "Notice Address"}
        result = find_best_clause_match("2.1(a)(ii)", clause_map)
        assert result == ClauseMapping("2.1(a)", "Notice Address")

    def test_segment_fallback(self) -> None:
        result = find_best_clause_match("2.1.3", {"2": "Scope"})
        assert result == ClauseMapping("2", "Scope")

    def test_hyphen_code_fallback(self) -> None:
        result = find_best_clause_match("GC-1.2", {"GC-1": "General"})
        assert result == ClauseMapping(number="GC-1", heading="General")

    def test_appendix_with_suffix(self) -> None:
        result = find_best_clause_match("A-1.2(b)", {"A-1": "Appendix Scope"})
        assert result == ClauseMapping("A-1", "Appendix Scope")

    def test_no_ancestor(self) -> None:
        assert find_best_clause_match("9.1(a)", CLAUSE_MAP) is None

    def test_unbalanced_parenthesis_terminates(self) -> None:
        assert find_best_clause_match("2.1(a", {"2": "Scope"}) == ClauseMapping("2", "Scope")

    def test_empty_map(self) -> None:
        assert find_best_clause_match("1.1", {}) is None
