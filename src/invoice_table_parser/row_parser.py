#!/usr/bin/env python3
"""
Row parser: extracts item, specification, quantity, unit price and supply
amount from one cleaned row using ordered heuristics with fallbacks.
"""

import re
import logging
from typing import List, Optional, Tuple

from .config import CompiledTemplate, TemplateConfig, resolve_template
from .models import ParsedItem
from .row_sanitizer import is_money_token, is_quantity_like
from .text_normalizer import split_to_columns

logger = logging.getLogger(__name__)

_PAREN_SPAN_RE = re.compile(r'\([^()]*\)')
_TRAILING_DASH_RE = re.compile(r'[-—]\s*$')
_LETTER_RE = re.compile(r'[A-Za-z가-힣]')
_DIGITS_ONLY_RE = re.compile(r'^[0-9]+$')


def to_int_strict(value) -> Optional[int]:
    """Integer made of every digit in ``value``; None if there are none."""
    digits = re.sub(r'[^0-9]', '', str(value or ''))
    return int(digits) if digits else None


def _squash(text: str) -> str:
    return re.sub(r'\s+', ' ', text).strip()


def _is_purely_numeric(text: str) -> bool:
    return bool(_DIGITS_ONLY_RE.match(re.sub(r'[\s,.\-]', '', str(text or ''))))


def extract_specification(text: str, template: CompiledTemplate) -> str:
    """Unit-quantity text such as "500g" or "1kg*10ea", preferring one after a dash."""
    text = str(text or '')
    for regex in (template.dash_spec_regex, template.standalone_spec_regex):
        match = regex.search(text)
        if match and match.group(1):
            return _squash(match.group(1))
    return ''


def split_spec_from_item_name(text: str, template: CompiledTemplate) -> Tuple[str, str]:
    """
    Split a specification off an item name cell.

    A match introduced by a dash wins; otherwise the first standalone match
    outside parentheses is taken. Returns (item, spec), spec may be ''.
    """
    text = str(text or '')

    dash_match = template.dash_spec_in_item_regex.search(text)
    if dash_match:
        item = _TRAILING_DASH_RE.sub('', text[:dash_match.start()]).strip()
        return item, _squash(dash_match.group(1))

    paren_spans = [(m.start(), m.end()) for m in _PAREN_SPAN_RE.finditer(text)]
    for match in template.standalone_spec_in_item_regex.finditer(text):
        if any(start <= match.start() < end for start, end in paren_spans):
            continue
        remainder = text[:match.start()] + text[match.end():]
        remainder = re.sub(r'\s{2,}', ' ', remainder)
        item = _TRAILING_DASH_RE.sub('', remainder).strip()
        return item, _squash(match.group(1))

    return text.strip(), ''


class RowParser:
    """Turns cleaned rows into ParsedItem records."""

    def __init__(self, config: Optional[TemplateConfig] = None):
        self.template: CompiledTemplate = resolve_template(config)
        self.config = self.template.config

    def _split(self, text: str) -> Tuple[str, str]:
        return split_spec_from_item_name(text, self.template)

    def _repair_numeric_item(self, cols: List[str], item: str, spec: str) -> Tuple[Optional[str], str]:
        """Promote the first later cell containing a letter when the item is a number."""
        if not _is_purely_numeric(item):
            return item, spec

        for candidate in cols[1:]:
            candidate = candidate.strip()
            if not candidate or _is_purely_numeric(candidate):
                continue
            if _LETTER_RE.search(candidate):
                item, promoted_spec = self._split(candidate)
                spec = spec or promoted_spec
                break

        if _is_purely_numeric(item):
            return None, spec
        return item, spec

    def _money_tokens(self, cols: List[str], start: int) -> List[Tuple[int, int]]:
        tokens = []
        for i in range(max(1, start), len(cols)):
            if not is_money_token(cols[i]):
                continue
            value = to_int_strict(cols[i])
            if value is not None and value >= self.config.min_money_value:
                tokens.append((i, value))
        return tokens

    def parse_row(self, cols: List[str]) -> Optional[ParsedItem]:
        """Parse one row's cells; None means the row was rejected."""
        if not cols:
            return None
        raw_item = (cols[0] or '').strip()
        if not raw_item:
            return None

        item, specification = self._split(raw_item)
        item, specification = self._repair_numeric_item(cols, item, specification)
        if item is None or not item:
            logger.debug(f"Rejected row, no usable item name: {cols}")
            return None

        if not specification and len(cols) > 1:
            next_col = cols[1].strip()
            if not is_quantity_like(next_col):
                specification = extract_specification(next_col, self.template) or next_col

        if not specification or specification.strip() == '-':
            specification = None

        quantity_candidates = [(i, int(cols[i].strip())) for i in range(1, len(cols)) if is_quantity_like(cols[i])]
        quantity = None
        quantity_index = None
        if len(quantity_candidates) == 1:
            quantity_index, quantity = quantity_candidates[0]

        money = self._money_tokens(cols, quantity_index + 1 if quantity_index is not None else 1)

        unit_price = unit_price_index = None
        supply_amount = supply_amount_index = None
        for (i, value), (next_i, next_value) in zip(money, money[1:]):
            if next_i == i + 1:
                unit_price_index, unit_price = i, value
                supply_amount_index, supply_amount = next_i, next_value
                break

        if unit_price is None and money:
            unit_price_index, unit_price = money[0]
            later = [(i, value) for i, value in money if i > unit_price_index]
            if later:
                supply_amount_index, supply_amount = later[0]

        if unit_price is None:
            logger.debug(f"Rejected row, no unit price: {cols}")
            return None

        if quantity is None and quantity_candidates:
            occupied = {idx for idx in (unit_price_index, supply_amount_index) if idx is not None}
            for i, value in quantity_candidates:
                if i not in occupied:
                    quantity_index, quantity = i, value
                    break

        return ParsedItem(
            item=item,
            specification=specification,
            quantity=quantity,
            unit_price=unit_price,
            supply_amount=supply_amount,
        )

    def parse_line(self, line: str) -> Optional[ParsedItem]:
        return self.parse_row(split_to_columns(line))

    def parse_rows(self, rows: List[str]) -> List[ParsedItem]:
        """Parse every row, keeping only those with a unit price."""
        items = []
        for line in rows:
            parsed = self.parse_line(line)
            if parsed is not None and parsed.unit_price is not None:
                items.append(parsed)
        return items


def parse_items(rows: List[str], config: Optional[TemplateConfig] = None) -> List[ParsedItem]:
    """Convenience function to parse cleaned rows into items (VAT not attached)."""
    return RowParser(config).parse_rows(rows)
