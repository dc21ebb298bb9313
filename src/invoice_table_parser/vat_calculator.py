#!/usr/bin/env python3
"""
VAT calculation for Korean invoices: 10% of the supply amount, rounded up.
"""

import re
import logging
from decimal import Decimal, InvalidOperation, ROUND_CEILING, localcontext
from typing import Any, Dict, Iterable, List, Optional

from .models import ParsedItem

logger = logging.getLogger(__name__)

DEFAULT_VAT_RATE = Decimal('0.1')


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = re.sub(r'[,\s]', '', value)
        if not value:
            return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def calculate_vat(supply_amount: Any, rate: Decimal = DEFAULT_VAT_RATE) -> int:
    """
    VAT = ceil(supply_amount * rate) as an integer.

    Decimal arithmetic keeps exact tenths (6727 -> 673, 10000 -> 1000).
    Returns 0 for None, NaN or anything that is not a number.
    """
    amount = _to_decimal(supply_amount)
    if not amount:
        return 0
    rate = Decimal(str(rate))
    with localcontext() as ctx:
        # Enough digits for the product to be exact before rounding up
        needed = len(amount.as_tuple().digits) + len(rate.as_tuple().digits)
        ctx.prec = max(ctx.prec, needed)
        return int((amount * rate).to_integral_value(rounding=ROUND_CEILING))


def attach_vat(items: Iterable[ParsedItem], rate: Decimal = DEFAULT_VAT_RATE) -> List[ParsedItem]:
    """Fill in VAT for items whose supply amount is known and VAT is missing."""
    items = list(items)
    for item in items:
        if item.supply_amount and item.vat is None:
            item.vat = calculate_vat(item.supply_amount, rate)
    return items


def backfill_schema_vat(schema: Dict[str, Any], rate: Decimal = DEFAULT_VAT_RATE) -> Dict[str, Any]:
    """Copy of a validated schema row with VAT calculated when none was captured."""
    schema = dict(schema)
    if schema.get('supplyAmount') and not schema.get('vat'):
        supply = _to_decimal(schema['supplyAmount'])
        if supply:
            schema['vat'] = calculate_vat(supply, rate)
    return schema
