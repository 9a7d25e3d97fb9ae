"""Clause-number parsing and extended table-of-contents extraction."""
from __future__ import annotations

from tocmap.clause_pattern import CLAUSE_NUMBER_PATTERN, is_clause_number
from tocmap.extended_toc import (
    ExtendedTocEntry,
    build_extended_toc,
    build_extended_toc_from_summaries,
    sort_extended_toc,
)
from tocmap.toc_parser import (
    ClauseMapping,
    find_best_clause_match,
    find_clause_references,
    parse_toc,
)

__all__ = [
    "CLAUSE_NUMBER_PATTERN",
    "ClauseMapping",
    "ExtendedTocEntry",
    "build_extended_toc",
    "build_extended_toc_from_summaries",
    "find_best_clause_match",
    "find_clause_references",
    "is_clause_number",
    "parse_toc",
    "sort_extended_toc",
]
