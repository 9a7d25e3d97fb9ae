"""Extended table of contents built from a full contract body.

The front-matter TOC of a contract is often incomplete. This module scans
every line of the normalized contract text (with ``=== PAGE n ===``
markers) for clause headings and produces a deduplicated, page-annotated
entry list, plus a hierarchical sort so ``1.10`` lands after ``1.2``.

Two sources are supported:

* :func:`build_extended_toc` — line scan over normalized text.
* :func:`build_extended_toc_from_summaries` — clause numbers and headings
  already identified per text chunk (JSON summaries), tagged with the
  chunk's start page.

Both keep the FIRST occurrence of a clause number. Running headers and
footers repeat clause headings on later pages; the first occurrence is
the real heading. (:func:`tocmap.toc_parser.parse_toc` is last-wins.)
"""
from __future__ import annotations

import functools
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from tocmap.clause_pattern import split_clause_line
from tocmap.toc_parser import ClauseMapping


@dataclass(frozen=True, slots=True)
class ExtendedTocEntry:
    """A clause heading detected in the contract body."""

    clause_number: str  # "2.3.4", "25.1(b)"
    description: str    # heading text without the number
    page_no: int        # 1-based page of the heading

    def to_dict(self) -> dict[str, Any]:
        return {
            "clause_number": self.clause_number,
            "description": self.description,
            "page_no": self.page_no,
        }


# ---------------------------------------------------------------------------
# Heading validity
# ---------------------------------------------------------------------------

MIN_HEADING_LENGTH = 3
MAX_HEADING_LENGTH = 100
MAX_CLAUSE_NUMBER_LENGTH = 15

_PAGE_MARKER_RE = re.compile(r"===\s*PAGE\s+([0-9]+)\s*===", re.IGNORECASE)
_PAGE_HEADING_RE = re.compile(r"^page\s+[0-9]+$", re.IGNORECASE)
_HEADING_START_RE = re.compile(r"^[A-Z\[]")
_DOCUMENT_ID_RE = re.compile(r"^[0-9]{4,}")

# Sentence fragments that follow a number-like token in body text
# ("30 Business Days", "12 Months", "5 and ...").
_FALSE_POSITIVE_HEADINGS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^Business Day",
        r"^Month",
        r"^Year",
        r"^Week",
        r"^of the Payment",
        r"^and\s+",
        r"^or\s+",
        r"^are solely",
        r"^is required",
        r"^was correct",
        r"^have been",
    )
)


def is_valid_clause_heading(heading: str) -> bool:
    """Check that ``heading`` looks like a clause title, not running text."""
    if not MIN_HEADING_LENGTH <= len(heading) <= MAX_HEADING_LENGTH:
        return False
    if _HEADING_START_RE.match(heading) is None:
        return False
    return not any(p.match(heading) for p in _FALSE_POSITIVE_HEADINGS)


def extract_page_number(line: str) -> int | None:
    """Return ``n`` for a ``=== PAGE n ===`` marker line, else None."""
    m = _PAGE_MARKER_RE.search(line)
    return int(m.group(1)) if m else None


def parse_clause_heading(line: str) -> ClauseMapping | None:
    """Parse a body line as a clause heading, rejecting likely false positives.

    Rejected: headings that fail :func:`is_valid_clause_heading`, headings
    that are just ``page n``, numbers longer than 15 characters, and
    numbers starting with four or more digits (document or invoice IDs).
    """
    parts = split_clause_line(line)
    if parts is None:
        return None
    number, heading = parts
    if _PAGE_HEADING_RE.match(heading):
        return None
    if not is_valid_clause_heading(heading):
        return None
    if len(number) > MAX_CLAUSE_NUMBER_LENGTH:
        return None
    if _DOCUMENT_ID_RE.match(number):
        return None
    return ClauseMapping(number=number, heading=heading)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_extended_toc(raw_text: str) -> list[ExtendedTocEntry]:
    """Scan normalized contract text for clause headings, in document order.

    ``page_no`` is the most recent page marker before the heading (1 if
    none precedes it). Marker lines are never treated as headings.
    """
    entries: list[ExtendedTocEntry] = []
    if not raw_text:
        return entries

    current_page = 1
    seen: set[str] = set()
    for line in raw_text.split("\n"):
        page_no = extract_page_number(line)
        if page_no is not None:
            current_page = page_no
            continue

        parsed = parse_clause_heading(line)
        if parsed is None or parsed.number in seen:
            continue
        seen.add(parsed.number)
        entries.append(
            ExtendedTocEntry(
                clause_number=parsed.number,
                description=parsed.heading,
                page_no=current_page,
            )
        )
    return entries


def _summary_field(summary: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = summary.get(key)
        if value:
            return value
    return None


def _page_or_default(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def build_extended_toc_from_summaries(
    chunks: Iterable[Mapping[str, Any]],
) -> list[ExtendedTocEntry]:
    """Collect clause headings from per-chunk summaries.

    Each chunk is a mapping with ``start_page`` and ``summary_json``; the
    latter holds ``{"summaries": [{"clause_number": ..., "heading": ...}]}``
    (``clauseNumber``/``startPage``/``summaryJson`` spellings are accepted).
    Chunks must be supplied in document order. Summaries missing either
    field are skipped.
    """
    entries: list[ExtendedTocEntry] = []
    seen: set[str] = set()
    for chunk in chunks:
        summary_json = _summary_field(chunk, "summary_json", "summaryJson")
        if not isinstance(summary_json, Mapping):
            continue
        start_page = _page_or_default(_summary_field(chunk, "start_page", "startPage"))
        for summary in summary_json.get("summaries") or []:
            if not isinstance(summary, Mapping):
                continue
            number = _summary_field(summary, "clause_number", "clauseNumber")
            heading = _summary_field(summary, "heading")
            if not number or not heading:
                continue
            number = str(number)
            if number in seen:
                continue
            seen.add(number)
            entries.append(
                ExtendedTocEntry(
                    clause_number=number,
                    description=str(heading),
                    page_no=start_page,
                )
            )
    return entries


# ---------------------------------------------------------------------------
# Hierarchical ordering
# ---------------------------------------------------------------------------

# New part before each "." and "(": "1.1(a)" -> ["1", ".1", "(a)"]
_PART_SPLIT_RE = re.compile(r"(?=[.(])")
_NON_DIGIT_RE = re.compile(r"[^0-9]")

# Punctuation ranks below digits, digits below letters; "-" < "." < "(" < ")".
_PUNCT_ORDER = "-.()"


def _split_parts(clause_number: str) -> list[str]:
    return [p for p in _PART_SPLIT_RE.split(clause_number) if p]


def _collation_key(part: str) -> tuple[tuple[tuple[int, str], ...], tuple[int, ...]]:
    """Case-insensitive primary key, lowercase-first tie-breaker."""
    primary: list[tuple[int, str]] = []
    for ch in part:
        if ch in _PUNCT_ORDER:
            primary.append((0, str(_PUNCT_ORDER.index(ch))))
        elif ch.isdigit():
            primary.append((1, ch))
        elif ch.isalpha():
            primary.append((2, ch.casefold()))
        else:
            primary.append((0, ch))
    tertiary = tuple(1 if ch.isupper() else 0 for ch in part)
    return tuple(primary), tertiary


def _compare_strings(a: str, b: str) -> int:
    key_a, key_b = _collation_key(a), _collation_key(b)
    if key_a != key_b:
        return -1 if key_a < key_b else 1
    if a != b:
        return -1 if a < b else 1
    return 0


def compare_clause_numbers(a: str, b: str) -> int:
    """Three-way hierarchical comparison of two clause numbers.

    Parts are compared positionally. When both parts contain digits, the
    digits are compared as integers first (``.2`` < ``.10``); otherwise,
    or on an integer tie, differing parts compare as strings. A missing
    part counts as empty, so a parent sorts before its children.
    """
    parts_a = _split_parts(a)
    parts_b = _split_parts(b)
    for i in range(max(len(parts_a), len(parts_b))):
        part_a = parts_a[i] if i < len(parts_a) else ""
        part_b = parts_b[i] if i < len(parts_b) else ""

        digits_a = _NON_DIGIT_RE.sub("", part_a)
        digits_b = _NON_DIGIT_RE.sub("", part_b)
        if digits_a and digits_b:
            num_a, num_b = int(digits_a), int(digits_b)
            if num_a != num_b:
                return -1 if num_a < num_b else 1

        if part_a != part_b:
            return _compare_strings(part_a, part_b)
    return 0


clause_sort_key = functools.cmp_to_key(compare_clause_numbers)


def sort_extended_toc(entries: Iterable[ExtendedTocEntry]) -> list[ExtendedTocEntry]:
    """Return ``entries`` in hierarchical clause order (stable)."""
    return sorted(entries, key=lambda e: clause_sort_key(e.clause_number))
