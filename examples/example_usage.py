#!/usr/bin/env python3
"""
Example usage of the Invoice Table Parser
Demonstrates the pipeline stages on a sample OCR text blob.
"""

import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_table_parser import InvoiceTablePipeline, TableLocator, TextNormalizer
from invoice_table_parser.refinement import build_refinement_payload
from invoice_table_parser.unit_cost import cost_breakdown


def create_sample_ocr_text():
    """OCR output of a Korean invoice, escaped the way OCR APIs return it."""
    return (
        '"거래명세서\\n'
        'www.softcity.co.kr\\t경영박사\\n'
        '품목\\t규격\\t수량\\t단\\t가\\t공급가액\\t세액\\n'
        '깐마늘-1kg\\t3\\t12,000\\t36,000\\n'
        '양파 20kg\\t2\\t30,000\\t60,000\\t6,000\\n'
        '12,500\\t25,000\\n'
        '감자 [3kgx3개/박스]\\t2\\n'
        '=== 이하여백 ===\\n'
        '인수자\\t김철수",'
    )


def demonstrate_stages():
    """Show what the normalizer and locator see."""
    print("=" * 60)
    print("DEMONSTRATION: Normalization and table location")
    print("=" * 60)

    lines = TextNormalizer().normalize(create_sample_ocr_text())
    for index, line in enumerate(lines):
        print(f"{index:2d}: {line}")

    table_slice = TableLocator().slice_table(lines)
    print(f"\nTable rows {table_slice.start}..{table_slice.end}:")
    for row in table_slice.rows:
        print(f"  {row}")


def demonstrate_pipeline():
    """Run the full pipeline and print the output contract."""
    print("\n" + "=" * 60)
    print("DEMONSTRATION: Full pipeline")
    print("=" * 60)

    result = InvoiceTablePipeline().process(create_sample_ocr_text())
    print(json.dumps(result.to_dict(include_diagnostics=True), indent=2, ensure_ascii=False))

    print("\nCost per unit:")
    for item in result.parsed_items:
        breakdown = cost_breakdown(item)
        print(f"  {breakdown['item']}: {breakdown['costPerUnit']} per {breakdown['unit']}")

    payload = build_refinement_payload(result)
    print(f"\nRefinement payload sections: {', '.join(payload)}")


if __name__ == "__main__":
    demonstrate_stages()
    demonstrate_pipeline()
