"""Table-of-contents parsing and clause reference resolution.

Turns a front-matter TOC block into a ``clause number -> heading`` map and
resolves references found in free text against that map, falling back to
the closest enclosing clause when a sub-reference was never headed on its
own (``2.1(a)(ii)`` resolves to ``2.1``).

All functions are pure. Unparseable lines and fragments are skipped, never
raised on.
"""
from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from tocmap.clause_pattern import (
    is_clause_number,
    iter_clause_numbers,
    split_clause_line,
)


@dataclass(frozen=True, slots=True)
class ClauseMapping:
    """A clause number and the heading printed beside it."""

    number: str     # "25.1(b)"
    heading: str    # "Performance Bond"


@dataclass(frozen=True, slots=True)
class ReferenceHit:
    """One grammar match found while scanning free text (debug view)."""

    match: str
    is_valid: bool
    in_toc: bool
    heading: str | None


# ---------------------------------------------------------------------------
# TOC parsing
# ---------------------------------------------------------------------------

def parse_toc_line(line: str) -> ClauseMapping | None:
    """Parse one TOC line such as ``"1.2.3  General ....... 45"``."""
    parts = split_clause_line(line)
    if parts is None:
        return None
    return ClauseMapping(number=parts[0], heading=parts[1])


def parse_toc(toc_text: str) -> dict[str, str]:
    """Parse a TOC block into ``{clause_number: heading}``.

    A number repeated later in the block overwrites the earlier heading.
    """
    clause_map: dict[str, str] = {}
    if not toc_text:
        return clause_map
    for line in toc_text.split("\n"):
        mapping = parse_toc_line(line)
        if mapping is not None:
            clause_map[mapping.number] = mapping.heading
    return clause_map


# ---------------------------------------------------------------------------
# Reference scanning
# ---------------------------------------------------------------------------

def find_clause_references(text: str, clause_map: Mapping[str, str]) -> list[str]:
    """Return distinct clause numbers from ``text`` that exist in ``clause_map``.

    Order is first appearance in ``text``.
    """
    found: list[str] = []
    seen: set[str] = set()
    for number in iter_clause_numbers(text):
        if number in clause_map and number not in seen:
            seen.add(number)
            found.append(number)
    return found


def scan_references(text: str, clause_map: Mapping[str, str]) -> list[ReferenceHit]:
    """Report every clause-number match in ``text`` with its TOC status.

    Unlike :func:`find_clause_references` this keeps duplicates and numbers
    missing from the map, so a reviewer can see why a reference was or
    was not linked.
    """
    return [
        ReferenceHit(
            match=number,
            is_valid=is_clause_number(number),
            in_toc=number in clause_map,
            heading=clause_map.get(number),
        )
        for number in iter_clause_numbers(text)
    ]


# ---------------------------------------------------------------------------
# Parent fallback
# ---------------------------------------------------------------------------

_LAST_SUFFIX_RE = re.compile(r"\([^)]*\)$")
_SEGMENT_SPLIT_RE = re.compile(r"[.\-]")


def iter_parent_candidates(clause_number: str) -> Iterator[str]:
    """Yield ancestors of ``clause_number``, closest first.

    1. Strip trailing parentheticals one at a time:
       ``2.1(a)(ii)`` -> ``2.1(a)`` -> ``2.1``.
    2. Drop trailing ``.``/``-`` segments of what remains, re-joined with
       dots: ``2.1.3`` -> ``2.1`` -> ``2``.
    3. For hyphenated codes, drop trailing dot segments of the last hyphen
       segment only: ``GC-1.2`` -> ``GC-1``.

    The exact number itself is not yielded.
    """
    current = clause_number
    while "(" in current:
        stripped = _LAST_SUFFIX_RE.sub("", current)
        if stripped == current:
            # Unbalanced "(" with nothing left to strip.
            break
        current = stripped
        yield current

    segments = _SEGMENT_SPLIT_RE.split(current)
    while len(segments) > 1:
        segments.pop()
        yield ".".join(segments)

    hyphen_segments = current.split("-")
    if len(hyphen_segments) > 1:
        head = hyphen_segments[:-1]
        dot_segments = hyphen_segments[-1].split(".")
        while len(dot_segments) > 1:
            dot_segments.pop()
            yield "-".join([*head, ".".join(dot_segments)])


def find_best_clause_match(
    clause_number: str,
    clause_map: Mapping[str, str],
) -> ClauseMapping | None:
    """Find ``clause_number`` or its closest headed ancestor in ``clause_map``.

    Returns None when neither the number nor any ancestor is mapped.
    """
    if clause_number in clause_map:
        return ClauseMapping(clause_number, clause_map[clause_number])
    for candidate in iter_parent_candidates(clause_number):
        if candidate in clause_map:
            return ClauseMapping(candidate, clause_map[candidate])
    return None
