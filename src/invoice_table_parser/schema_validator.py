#!/usr/bin/env python3
"""
Schema validator: an independent second pass over the cleaned rows.

It assigns column roles differently from RowParser on purpose and is used for
reporting and downstream refinement, not for item extraction:

* item: first cell containing a Korean or Latin letter
* money: cells that are a plain number of 4+ digits once commas and spaces are
  removed; the first two are unit price and supply amount, a third is VAT
* quantity: first 1-3 digit cell between the item and the unit price
* specification: first cell between item and quantity that is neither
  quantity-like nor money-like

Known divergences from RowParser: a row with a single money cell is parsed by
RowParser (supply amount None) but rejected here; a 3-digit count such as
"120" is a quantity here but not for RowParser; "1,5000" is money here but not
for RowParser.
"""

import re
import logging
from typing import List, Optional, Tuple

from .config import TemplateConfig, resolve_template
from .models import ValidationRecord, ValidationReport
from .text_normalizer import split_to_columns

logger = logging.getLogger(__name__)

_SEPARATORS_RE = re.compile(r'[,\s]')
_MONEY_RE = re.compile(r'^[0-9]{4,}$')
_QUANTITY_RE = re.compile(r'^[0-9]{1,3}$')
_ITEM_RE = re.compile(r'[가-힣A-Za-z]')


def is_valid_money(value: str) -> bool:
    if not value:
        return False
    return bool(_MONEY_RE.match(_SEPARATORS_RE.sub('', str(value))))


def is_valid_quantity(value: str) -> bool:
    if not value:
        return False
    return bool(_QUANTITY_RE.match(_SEPARATORS_RE.sub('', str(value))))


def is_valid_item(value: str) -> bool:
    if not value or not value.strip():
        return False
    return bool(_ITEM_RE.search(value))


class SchemaValidator:
    """Partitions cleaned rows into valid and invalid records with reasons."""

    def __init__(self, config: Optional[TemplateConfig] = None):
        self.config = resolve_template(config).config

    def validate_row(self, row_index: int, row: str) -> ValidationRecord:
        cols = split_to_columns(row)
        record = ValidationRecord(row_index=row_index, row=row, cols=cols, col_count=len(cols))

        min_columns = self.config.validator_min_columns
        if len(cols) < min_columns:
            record.issues.append(f"Insufficient columns: expected at least {min_columns}, got {len(cols)}")
            return record

        item: Optional[Tuple[int, str]] = next(
            ((i, c) for i, c in enumerate(cols) if is_valid_item(c)), None)
        if item is None:
            record.issues.append('Missing item name (품명)')

        money = [(i, c) for i, c in enumerate(cols) if is_valid_money(c)]
        if len(money) < 2:
            record.issues.append(
                f"Missing required money values: expected at least 2 (unitPrice + supplyAmount), found {len(money)}")
            return record

        unit_price, supply_amount = money[0], money[1]
        vat = money[2] if len(money) > 2 else None

        first_after_item = item[0] + 1 if item is not None else 0
        quantity = next(
            ((i, cols[i]) for i in range(first_after_item, unit_price[0]) if is_valid_quantity(cols[i])), None)
        if quantity is None:
            record.issues.append('Missing quantity (수량)')

        specification = None
        if quantity is not None:
            specification = next(
                ((i, cols[i]) for i in range(first_after_item, quantity[0])
                 if cols[i] and not is_valid_quantity(cols[i]) and not is_valid_money(cols[i])), None)

        record.schema = {
            'item': item[1] if item else None,
            'specification': specification[1] if specification else None,
            'quantity': quantity[1] if quantity else None,
            'unitPrice': unit_price[1],
            'supplyAmount': supply_amount[1],
            'vat': vat[1] if vat else None,
        }

        if not record.schema['item']:
            record.issues.append('Item (품명) cannot be null')
        if not record.schema['quantity']:
            record.issues.append('Quantity (수량) cannot be null')
        if not record.schema['unitPrice']:
            record.issues.append('Unit price (단가) cannot be null')
        if not record.schema['supplyAmount']:
            record.issues.append('Supply amount (공급가액) cannot be null')

        return record

    def validate(self, rows: List[str]) -> ValidationReport:
        report = ValidationReport()
        for row_index, row in enumerate(rows):
            record = self.validate_row(row_index, row)
            if record.is_valid:
                report.valid.append(record)
            else:
                logger.debug(f"Row {row_index} failed schema validation: {', '.join(record.issues)}")
                report.invalid.append(record)
        return report


def validate_row_schema(rows: List[str], config: Optional[TemplateConfig] = None) -> ValidationReport:
    """Convenience function to validate cleaned rows against the expected schema."""
    return SchemaValidator(config).validate(rows)
