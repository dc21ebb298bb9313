#!/usr/bin/env python3
"""
Locates the line-item table inside normalized OCR lines.

OCR regularly splits a header label such as 단가 into separate cells ("단", "가")
or inserts spaces inside it ("단 가"), so keyword lookup is whitespace tolerant
and adjacent cells are stitched together before comparison.
"""

import re
import logging
from typing import Iterable, List, Optional, Pattern

from .config import CompiledTemplate, TemplateConfig, resolve_template, variants_regex
from .models import FooterMarker, KeywordHit, TableSlice
from .text_normalizer import split_to_columns

logger = logging.getLogger(__name__)


def _strip_whitespace(text: str) -> str:
    return re.sub(r'\s+', '', text)


def find_keyword_cells(lines: List[str], regex: Pattern) -> List[KeywordHit]:
    """Every single cell in which ``regex`` finds a (loose) keyword match."""
    hits = []
    for row_index, line in enumerate(lines):
        for col_index, cell in enumerate(split_to_columns(line)):
            if regex.search(cell):
                hits.append(KeywordHit(
                    row_index=row_index,
                    start_col=col_index,
                    end_col=col_index,
                    matched_text=cell,
                    normalized_text=_strip_whitespace(cell),
                ))
    return hits


def find_stitched_keywords(lines: List[str], keywords: Iterable[str], max_span: int = 4) -> List[KeywordHit]:
    """
    Find keywords spread across up to ``max_span`` adjacent cells.

    For every row and starting column the following cells are joined with a
    single space, whitespace is removed, and the result is compared with the
    whitespace-free keywords. Every matching span is reported.
    """
    targets = {_strip_whitespace(str(k)) for k in keywords}
    hits = []
    for row_index, line in enumerate(lines):
        cols = split_to_columns(line)
        for start in range(len(cols)):
            stitched = ''
            for span in range(1, max_span + 1):
                end = start + span - 1
                if end >= len(cols):
                    break
                stitched = cols[start] if span == 1 else f"{stitched} {cols[end]}"
                normalized = _strip_whitespace(stitched)
                if normalized in targets:
                    hits.append(KeywordHit(
                        row_index=row_index,
                        start_col=start,
                        end_col=end,
                        matched_text=stitched,
                        normalized_text=normalized,
                    ))
    return hits


class TableLocator:
    """Finds the header row and the footer, and slices the data rows between them."""

    def __init__(self, config: Optional[TemplateConfig] = None):
        self.template: CompiledTemplate = resolve_template(config)
        self.config = self.template.config

    def find_header_hits(self, lines: List[str]) -> List[KeywordHit]:
        """Positions of the unit-price label, unique by (row, start, end)."""
        hits = {}
        stitched = find_stitched_keywords(lines, self.config.header_keywords, self.config.header_max_span)
        for hit in stitched:
            hits[(hit.row_index, hit.start_col, hit.end_col)] = hit

        # Seed variants are loose, so only cells spelling a full label count
        for seed in find_keyword_cells(lines, self.template.header_seed_regex):
            if seed.normalized_text in self.template.header_targets:
                hits[(seed.row_index, seed.start_col, seed.end_col)] = seed

        result = list(hits.values())
        for hit in result:
            logger.debug(f"Header hit row {hit.row_index}, cols {hit.start_col}-{hit.end_col}: {hit.matched_text}")
        return result

    def find_header_row(self, lines: List[str]) -> Optional[int]:
        hits = self.find_header_hits(lines)
        if not hits:
            return None
        return min(hit.row_index for hit in hits)

    def find_footer_marker(self, lines: List[str]) -> Optional[FooterMarker]:
        """The end-of-table banner, or the earliest assignee cell as a fallback."""
        for row_index, line in enumerate(lines):
            if self.template.footer_banner_regex.search(line):
                logger.debug(f"Footer banner at row {row_index}: {line}")
                return FooterMarker(kind=FooterMarker.MARKER, row_index=row_index, col_index=None, value=line)

        assignee_hits = find_keyword_cells(lines, self.template.assignee_regex)
        if assignee_hits:
            earliest = min(assignee_hits, key=lambda hit: hit.row_index)
            logger.debug(f"Assignee footer at row {earliest.row_index}: {earliest.matched_text}")
            return FooterMarker(
                kind=FooterMarker.ASSIGNEE,
                row_index=earliest.row_index,
                col_index=earliest.start_col,
                value=earliest.matched_text,
            )

        return None

    def slice_table(self, lines: List[str]) -> TableSlice:
        """
        Cut out the data rows.

        Rows start right after the header. A banner footer removes the row
        above it; an assignee footer removes the two rows above it. Without a
        footer the slice runs to the end of the input, without a header it is
        empty.
        """
        header_row = self.find_header_row(lines)
        if header_row is None:
            logger.debug("No header row found")
            return TableSlice(start=None, end=None, rows=[])

        start = min(max(header_row + 1, 0), len(lines))
        footer = self.find_footer_marker(lines)
        if footer is None:
            logger.debug(f"No footer found, slicing rows {start}..end")
            return TableSlice(start=start, end=None, rows=lines[start:])

        if footer.kind == FooterMarker.MARKER:
            end_cut = footer.row_index - self.config.banner_footer_offset
        else:
            end_cut = footer.row_index - self.config.assignee_footer_offset
        end = max(min(end_cut, len(lines) - 1), -1)

        rows = lines[start:end + 1] if start <= end else []
        logger.debug(f"Sliced rows {start}-{end} ({len(rows)} rows)")
        return TableSlice(start=start, end=end, rows=rows)


def locate_table(lines: List[str], config: Optional[TemplateConfig] = None) -> TableSlice:
    """Convenience function to slice the line-item table out of normalized lines."""
    return TableLocator(config).slice_table(lines)


def find_cells_by_keywords(lines: List[str], variants: List[str]) -> List[KeywordHit]:
    """Single cells loosely matching any of ``variants``."""
    return find_keyword_cells(lines, variants_regex(variants))
