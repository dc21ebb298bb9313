#!/usr/bin/env python3
"""
Row sanitizer: removes noise columns and re-distributes stray numeric lines.

OCR sometimes isolates the trailing numbers of a row (quantity, price, amount)
onto a line of their own. Such lines are never kept as rows; their tokens are
parked in a NumericQueue and injected into the next rows that look incomplete.
"""

import re
import logging
from collections import deque
from typing import Iterable, List, Optional

from .config import CompiledTemplate, TemplateConfig, resolve_template
from .models import RemovedColumn, SanitizeResult
from .text_normalizer import join_columns, split_to_columns

logger = logging.getLogger(__name__)

QUANTITY_LIKE_RE = re.compile(r'^[0-9]{1,2}$')
MONEY_TOKEN_RE = re.compile(r'^(?:[0-9]{1,3}(?:,[0-9]{3})+|[0-9]{4,})$')
NUMERIC_TOKEN_RE = re.compile(r'^[0-9]+(?:\.[0-9]+)?$')
PREFIX_ID_RE = re.compile(r'^(?:[0-9]{1,2}\.[0-9]{1,2}\s+\S+|[A-Za-z]{2,}[0-9]{2,}|[0-9]{6,})$')


def is_quantity_like(value: str) -> bool:
    return bool(QUANTITY_LIKE_RE.match(str(value or '').strip()))


def is_money_token(value: str) -> bool:
    """Clean money text such as 55,000 or 5000, nothing else in the cell."""
    return bool(MONEY_TOKEN_RE.match(str(value or '').strip()))


def is_numeric_token(value: str) -> bool:
    return bool(NUMERIC_TOKEN_RE.match(re.sub(r'[\s,]', '', str(value or ''))))


def looks_like_prefix_id(value: str) -> bool:
    """Date-like, alphanumeric code or long digit run in front of a data row."""
    return bool(PREFIX_ID_RE.match(str(value or '').strip()))


class NumericQueue:
    """
    FIFO of numeric tokens taken from standalone numeric lines.

    push_front() puts a whole stray line ahead of older tokens (keeping its own
    order), pop_front() hands out the oldest-dequeued-first token, and
    push_back() parks a value displaced by a swap at the tail.
    """

    def __init__(self):
        self._tokens = deque()

    def push_front(self, tokens: Iterable[str]) -> None:
        self._tokens.extendleft(reversed(list(tokens)))

    def pop_front(self) -> str:
        return self._tokens.popleft()

    def push_back(self, token: str) -> None:
        self._tokens.append(token)

    def __len__(self) -> int:
        return len(self._tokens)

    def __bool__(self) -> bool:
        return bool(self._tokens)

    def snapshot(self) -> List[str]:
        return list(self._tokens)


class RowSanitizer:
    """Cleans the rows of a table slice; one instance may be reused across documents."""

    def __init__(self, config: Optional[TemplateConfig] = None):
        self.template: CompiledTemplate = resolve_template(config)
        self.config = self.template.config

    def is_noise(self, column: str) -> bool:
        return any(regex.search(column) for regex in self.template.noise_regexes)

    def is_unit_token(self, value: str) -> bool:
        return bool(self.template.unit_token_regex.match(str(value or '').strip()))

    def _should_prune_prefix(self, cols: List[str]) -> bool:
        if len(cols) < self.config.prefix_prune_min_columns:
            return False
        rest = cols[1:]
        has_unit = any(self.is_unit_token(c) for c in rest)
        quantity_count = sum(1 for c in rest if is_quantity_like(c))
        money_count = sum(1 for c in rest if is_money_token(c))
        return (
            not is_money_token(cols[0])
            and looks_like_prefix_id(cols[0])
            and has_unit
            and money_count >= 2
            and quantity_count >= 1
        )

    def _redistribute(self, cols: List[str], queue: NumericQueue, first_fill: bool) -> bool:
        """
        Inject queued tokens into ``cols`` in place.

        Returns True when at least one token was consumed. A row missing a
        quantity-like cell counts as one column short. ``cols`` must hold at
        least one non-numeric cell.
        """
        count = len(cols)
        effective = count + (0 if any(is_quantity_like(c) for c in cols) else 1)
        threshold = self.config.first_fill_threshold if first_fill else self.config.next_fill_threshold

        if effective < threshold:
            add_count = min(len(queue), threshold - effective)
            for _ in range(add_count):
                cols.append(queue.pop_front())
            return add_count > 0

        # Row is wide enough: swap its trailing cells with queued tokens.
        # Cells up to the first non-numeric one (the item) are never swapped.
        anchor = next(i for i, c in enumerate(cols) if not is_numeric_token(c))
        k = min(len(queue), count - anchor - 1)
        for j in range(k):
            idx = count - k + j
            displaced = cols[idx]
            cols[idx] = queue.pop_front()
            queue.push_back(displaced)
        return k > 0

    def clean(self, rows: List[str]) -> SanitizeResult:
        result = SanitizeResult()
        queue = NumericQueue()
        first_fill = True

        for row_index, line in enumerate(rows):
            cols = []
            for col_index, col in enumerate(split_to_columns(line)):
                if self.is_noise(col):
                    result.removed.append(RemovedColumn(row_index, col_index, line, col))
                    continue
                cols.append(col)

            if self._should_prune_prefix(cols):
                result.removed.append(RemovedColumn(row_index, 0, line, cols[0], reason='prefix_pruned'))
                cols.pop(0)

            if cols and all(is_numeric_token(c) for c in cols):
                logger.debug(f"Queueing stray numeric row {row_index}: {cols}")
                queue.push_front(cols)
                continue

            if queue and cols:
                if self._redistribute(cols, queue, first_fill):
                    first_fill = False

            joined = join_columns(cols)
            if not joined:
                continue
            result.kept.append(joined)

        for removed in result.removed:
            logger.debug(f"Removed column [{removed.row_index}:{removed.col_index}] "
                         f"({removed.reason}): {removed.column}")
        if queue:
            logger.debug(f"Unused numeric tokens left in queue: {queue.snapshot()}")
        return result


def clean_rows(rows: List[str], config: Optional[TemplateConfig] = None) -> SanitizeResult:
    """Convenience function to sanitize table rows."""
    return RowSanitizer(config).clean(rows)
