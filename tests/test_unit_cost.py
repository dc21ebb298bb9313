#!/usr/bin/env python3
"""
Tests for the cost-per-unit helper.
"""

import unittest
import sys
from decimal import Decimal
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_table_parser.models import ParsedItem
from invoice_table_parser.unit_cost import (
    cost_breakdown,
    cost_per_unit,
    extract_multiplier,
    parse_specification_quantity,
)


class TestUnitCost(unittest.TestCase):
    """Test cases for unit cost derivation."""

    def test_extract_multiplier(self):
        test_cases = [
            ("1kg*10", 10),
            ("3kgx3개/박스", 3),
            ("500g X 12", 12),
            ("1kg", 1),
            (None, 1),
        ]
        for spec, expected in test_cases:
            with self.subTest(spec=spec):
                self.assertEqual(extract_multiplier(spec), expected)

    def test_parse_specification_quantity(self):
        test_cases = [
            ("[3kgx3개/박스]", (Decimal("3"), "kg")),
            ("100매", (Decimal("100"), "매")),
            ("750ml 162", (Decimal("750"), "ml")),
            ("- 1.5L", (Decimal("1.5"), "L")),
            ("12", (Decimal("12"), "items")),
            ("-", (Decimal("1"), "items")),
            ("null", (Decimal("1"), "items")),
            (None, (Decimal("1"), "items")),
        ]
        for spec, expected in test_cases:
            with self.subTest(spec=spec):
                self.assertEqual(parse_specification_quantity(spec), expected)

    def test_cost_per_unit_includes_vat_when_charged(self):
        item = ParsedItem("사과", "3kg*4", 2, 12000, 24000, vat=2400)
        self.assertEqual(cost_per_unit(item), 1100)

    def test_cost_per_unit_without_vat(self):
        item = ParsedItem("사과", "3kg*4", 2, 12000, 24000)
        self.assertEqual(cost_per_unit(item), 1000)

    def test_cost_per_unit_vat_threshold_rounds_half_up(self):
        # 10% of 10,004 is 1,000.4: a VAT of 1,000 counts as charged
        self.assertEqual(cost_per_unit(ParsedItem("배", None, 1, 10004, 10004, vat=1000)), 11004)
        # below 10% the supply figure already includes VAT
        self.assertEqual(cost_per_unit(ParsedItem("배", None, 1, 10004, 10004, vat=909)), 10004)

    def test_cost_per_unit_unknown(self):
        self.assertIsNone(cost_per_unit(ParsedItem("사과", "1kg", None, 5000, 5000)))
        self.assertIsNone(cost_per_unit(ParsedItem("사과", "1kg", 1, 5000, None)))

    def test_cost_breakdown(self):
        breakdown = cost_breakdown(ParsedItem("계란", "30ea*10", 1, 55000, 55000))
        self.assertEqual(breakdown["packAmount"], "30")
        self.assertEqual(breakdown["unit"], "ea")
        self.assertEqual(breakdown["multiplier"], 10)
        self.assertEqual(breakdown["costPerUnit"], 183)


if __name__ == '__main__':
    unittest.main()
