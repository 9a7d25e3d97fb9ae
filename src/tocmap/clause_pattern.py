"""Clause-number grammar shared by TOC parsing and document scanning.

A clause number is a first segment, zero or more separated segments,
then zero or more parenthetical suffixes:

  first   — roman (``IV``), contains a digit (``1``, ``1A``, ``GC1``),
            or a bare alpha code of 1-4 capitals followed by ``.``/``-``
            (``A-``, ``SC-``, ``GC.``)
  later   — roman or contains a digit (no bare alpha codes)
  suffix  — ``(a)``, ``(ii)``, ``(B)``, ``(1)``

Examples accepted: ``1.2.3``, ``25.1(b)``, ``II.3A.1(b)(ii)``,
``GC-1.2``, ``A-1``, ``4.1-2(c)(iii)``.
Examples rejected: ``SECTION``, ``Article``, ``Chapter``, ``PARTS``.

The bare alpha code rule keeps ordinary heading words from matching while
still accepting appendix and construction-code prefixes.
"""
from __future__ import annotations

import re
from collections.abc import Iterator

# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

# [0-9] rather than \d: Python's \d also matches non-ASCII digits.
_ROMAN_SEGMENT = r"[IVXLCDM]+"
_DIGIT_SEGMENT = r"[A-Za-z0-9]*[0-9]+[A-Za-z0-9]*"
_ALPHA_CODE_SEGMENT = r"[A-Z]{1,4}(?=[.\-])"

_FIRST_SEGMENT = f"(?:{_ROMAN_SEGMENT}|{_DIGIT_SEGMENT}|{_ALPHA_CODE_SEGMENT})"
_LATER_SEGMENT = f"(?:{_ROMAN_SEGMENT}|{_DIGIT_SEGMENT})"
_SUFFIX = r"(?:\([A-Za-z0-9]+\))"

CLAUSE_NUMBER_PATTERN = f"{_FIRST_SEGMENT}(?:[.\\-]{_LATER_SEGMENT})*{_SUFFIX}*"

_CLAUSE_FULL_RE = re.compile(CLAUSE_NUMBER_PATTERN)
_CLAUSE_LINE_RE = re.compile(f"^({CLAUSE_NUMBER_PATTERN})\\s+(.+)")
# Lookarounds instead of \b so a trailing ")" still counts as a boundary.
_CLAUSE_REFERENCE_RE = re.compile(
    f"(?<![A-Za-z0-9])({CLAUSE_NUMBER_PATTERN})(?![A-Za-z0-9])"
)

# Dot-leader plus page number: "........ 45", "....45"
# Lookbehinds pin each attempt to the start of a run so long runs stay linear.
_DOT_LEADER_PAGE_RE = re.compile(r"(?<!\.)\.+\s*[0-9]+\s*$")
_TRAILING_PAGE_RE = re.compile(r"(?<!\s)\s+[0-9]+$")


# ---------------------------------------------------------------------------
# Matching primitives
# ---------------------------------------------------------------------------

def is_clause_number(text: str) -> bool:
    """True if the whole of ``text`` (stripped) is a single clause number."""
    if not text:
        return False
    return _CLAUSE_FULL_RE.fullmatch(text.strip()) is not None


def strip_page_suffix(heading: str) -> str:
    """Remove a trailing dot-leader/page number, then a bare page number."""
    heading = _DOT_LEADER_PAGE_RE.sub("", heading).strip()
    return _TRAILING_PAGE_RE.sub("", heading).strip()


def split_clause_line(line: str) -> tuple[str, str] | None:
    """Split a line into ``(clause_number, heading)``.

    The line must start with a clause number followed by whitespace. The
    heading has its dot-leader and page number removed. Returns None for
    blank lines, lines without a leading clause number, or lines whose
    heading is empty after cleanup.
    """
    trimmed = line.strip()
    if not trimmed:
        return None
    m = _CLAUSE_LINE_RE.match(trimmed)
    if m is None:
        return None
    heading = strip_page_suffix(m.group(2))
    if not heading:
        return None
    return m.group(1), heading


def iter_clause_numbers(text: str) -> Iterator[str]:
    """Yield every clause number appearing as a standalone token in ``text``.

    Matches are not preceded or followed by a letter or digit, so ``2.1``
    inside ``A2.1B`` is not reported. Duplicates are yielded each time.
    """
    if not text:
        return
    for m in _CLAUSE_REFERENCE_RE.finditer(text):
        yield m.group(1)
