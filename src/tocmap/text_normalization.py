"""Contract text normalization ahead of extended TOC extraction.

PDF/OCR extraction breaks paragraphs across lines. Normalization re-joins
wrapped lines into paragraphs, starts a new paragraph at every line that
opens with a numeric clause number, and keeps ``=== PAGE n ===`` markers
on their own lines so page numbers survive into the extended TOC.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

PAGE_MARKER_TEMPLATE = "=== PAGE {n} ==="

# "1.2.3 ", "1. ", "2.3) ", "1.1", "1.1 –", "1.1:", "1.1 -"
_CLAUSE_START_RE = re.compile(r"^[0-9]+(\.[0-9]+)*([.):–\-\s]|$)")
_PAGE_MARKER_LINE_RE = re.compile(r"^=== PAGE [0-9]+ ===$")
_PAGE_MARKER_RE = re.compile(r"=== PAGE ([0-9]+) ===")


def page_marker(n: int) -> str:
    """Return the marker line for 1-based page ``n``."""
    return PAGE_MARKER_TEMPLATE.format(n=n)


def insert_page_markers(pages: Iterable[str]) -> str:
    """Join per-page texts, each preceded by its ``=== PAGE n ===`` marker."""
    blocks: list[str] = []
    for n, page_text in enumerate(pages, start=1):
        blocks.append(page_marker(n))
        blocks.append(page_text)
    return "\n".join(blocks)


def normalize_contract_text(raw_text: str) -> str:
    """Re-flow extracted contract text into one paragraph per line.

    Rules, applied per stripped line:
      * blank line — ends the current paragraph
      * page marker — ends the current paragraph, kept verbatim
      * numeric clause start — ends the current paragraph, opens a new one
      * anything else — appended to the current paragraph with a space
    """
    text = raw_text.replace("\r", "")
    normalized: list[str] = []
    paragraph: list[str] = []

    def flush() -> None:
        if paragraph:
            normalized.append(" ".join(paragraph))
            paragraph.clear()

    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            flush()
            continue
        if _PAGE_MARKER_LINE_RE.match(trimmed):
            flush()
            normalized.append(trimmed)
            continue
        if _CLAUSE_START_RE.match(trimmed):
            flush()
        paragraph.append(trimmed)
    flush()

    result = "\n".join(normalized)
    logger.debug("Normalized %d -> %d characters", len(raw_text), len(result))
    return result


def page_number_at(text: str, position: int) -> int:
    """Page of the last ``=== PAGE n ===`` marker before ``position`` (1 if none)."""
    page = 1
    for m in _PAGE_MARKER_RE.finditer(text, 0, max(position, 0)):
        page = int(m.group(1))
    return page
