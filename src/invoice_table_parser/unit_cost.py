#!/usr/bin/env python3
"""
Cost per unit of an ingredient, derived from a parsed item's specification.

"3kg*4" bought twice for 24,000 means 24,000 / (4 * 3 * 2) = 1,000 per kg.
"""

import re
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

from .models import ParsedItem
from .vat_calculator import DEFAULT_VAT_RATE

logger = logging.getLogger(__name__)

DEFAULT_UNIT = 'items'

_MULTIPLIER_RE = re.compile(r'[xX*]\s*(\d+)')
_MULTIPLIER_SPLIT_RE = re.compile(r'[xX*]')
_AMOUNT_UNIT_RE = re.compile(r'^(\d+\.?\d*)\s*([a-zA-Z가-힣]+)')
_BARE_AMOUNT_RE = re.compile(r'^(\d+\.?\d*)$')


def extract_multiplier(specification: Optional[str]) -> int:
    """Pack count after x, X or * ("1kg*10" -> 10); 1 when absent."""
    match = _MULTIPLIER_RE.search(specification) if specification else None
    return int(match.group(1)) if match else 1


def parse_specification_quantity(specification: Optional[str]) -> Tuple[Decimal, str]:
    """Amount and unit of one pack, e.g. "[3kgx3개/박스]" -> (3, "kg")."""
    if not specification or specification == 'null' or not specification.strip():
        return Decimal('1'), DEFAULT_UNIT

    head = _MULTIPLIER_SPLIT_RE.split(specification)[0].strip()
    if not head:
        return Decimal('1'), DEFAULT_UNIT

    cleaned = re.sub(r'[\[\]()]', '', head)
    cleaned = re.sub(r'^-\s*', '', cleaned).strip()
    # "750ml 162" -> "750ml"
    cleaned = re.split(r'\s+\d+', cleaned)[0]

    match = _AMOUNT_UNIT_RE.match(cleaned)
    if match:
        return Decimal(match.group(1)), match.group(2)

    match = _BARE_AMOUNT_RE.match(cleaned)
    if match:
        return Decimal(match.group(1)), DEFAULT_UNIT

    return Decimal('1'), DEFAULT_UNIT


def cost_per_unit(item: ParsedItem) -> Optional[int]:
    """
    Supply amount divided by the total purchased amount of the unit.

    VAT is included when it is at least 10% of supply rounded half up, which
    means the supply figure on the invoice was VAT exclusive. Pipeline items
    always carry the computed VAT and so always include it; a lower VAT only
    comes from items built elsewhere, such as refined output.
    """
    if not item.supply_amount or not item.quantity:
        return None

    amount, _ = parse_specification_quantity(item.specification)
    divisor = Decimal(extract_multiplier(item.specification)) * amount * Decimal(item.quantity)
    if divisor == 0:
        return None

    total = Decimal(item.supply_amount)
    charged = (total * DEFAULT_VAT_RATE).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    if item.vat is not None and item.vat >= charged:
        total += Decimal(item.vat)

    try:
        return int((total / divisor).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        logger.warning(f"Could not compute cost per unit for {item.item}")
        return None


def cost_breakdown(item: ParsedItem) -> Dict[str, Any]:
    """Item summary with pack size, multiplier and cost per unit."""
    amount, unit = parse_specification_quantity(item.specification)
    return {
        'item': item.item,
        'packAmount': str(amount),
        'unit': unit,
        'multiplier': extract_multiplier(item.specification),
        'quantity': item.quantity,
        'costPerUnit': cost_per_unit(item),
    }
