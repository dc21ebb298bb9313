#!/usr/bin/env python3
"""
Payload and prompt handed to a downstream generative refinement step.

Only the data is built here; sending it anywhere is the caller's business.
"""

import json
import logging
from typing import Any, Dict, Union

from .models import PipelineResult
from .vat_calculator import calculate_vat

logger = logging.getLogger(__name__)

VAT_FORMULA = "VAT = ceil(supplyAmount * 0.1)"
VAT_EXAMPLE_AMOUNTS = [6727, 133364, 10000]

REFINEMENT_INSTRUCTIONS = """You are receiving pre-processed OCR data from a Korean invoice/receipt. \
The rows have been cleaned, validated against a schema and parsed.

The input contains:
1. schemaValidation: rows validated against the expected schema
   - validRows: rows that passed (item | specification | quantity | unitPrice | supplyAmount | vat)
   - invalidRows: rows that failed, with the issues found
2. parsedItems: structured items (item, specification, quantity, unitPrice, supplyAmount, vat)
3. cleanedRows: the cleaned text rows

Expected schema:
- item (품명): NOT NULL
- specification (규격): may be null; measurements such as kg, g, L, ml, cm, ea
- quantity (수량): NOT NULL, integer
- unitPrice (단가): NOT NULL, integer >= 1000
- supplyAmount (공급가액): NOT NULL, integer >= 1000
- vat (세액): {formula}, always an integer rounded up

Use validRows and parsedItems as the primary sources, keep Korean text as-is, \
remove thousands separators from numbers, keep specification null when unknown \
and ignore invalidRows unless they can be corrected.

Input data:
{data}

Output ONLY a valid JSON array of items, each with all 6 fields."""


def vat_calculation_examples() -> Dict[str, Any]:
    examples = []
    for amount in VAT_EXAMPLE_AMOUNTS:
        examples.append({
            'supplyAmount': amount,
            'calculation': f"ceil({amount} * 0.1)",
            'vat': calculate_vat(amount),
        })
    return {'formula': VAT_FORMULA, 'examples': examples}


def build_refinement_payload(result: Union[PipelineResult, Dict[str, Any]]) -> Dict[str, Any]:
    """Output contract plus worked VAT examples."""
    data = result.to_dict() if isinstance(result, PipelineResult) else dict(result)
    payload = {'vatCalculationExample': vat_calculation_examples()}
    payload['schemaValidation'] = data['schemaValidation']
    payload['parsedItems'] = data['parsedItems']
    payload['cleanedRows'] = data['cleanedRows']
    return payload


def build_refinement_prompt(payload: Dict[str, Any]) -> str:
    data = json.dumps(payload, indent=2, ensure_ascii=False)
    return REFINEMENT_INSTRUCTIONS.format(formula=VAT_FORMULA, data=data)
