#!/usr/bin/env python3
"""
End-to-end tests for the invoice table pipeline.
"""

import json
import unittest
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from invoice_table_parser import InvoiceTablePipeline, parse_invoice_text
from invoice_table_parser.exceptions import DiagnosticCode
from invoice_table_parser.refinement import build_refinement_payload, build_refinement_prompt

BANNER_DOCUMENT = (
    '"거래명세서\\n'
    'www.softcity.co.kr\\t경영박사\\n'
    '품목\\t규격\\t수량\\t단\\t가\\t공급가액\\t세액\\n'
    '깐마늘-1kg\\t3\\t12,000\\t36,000\\n'
    '양파 20kg\\t2\\t30,000\\t60,000\\t6,000\\n'
    '대파\\t1단\\t4\\t2,500\\t10,000\\n'
    '=== 이하여백 ===\\n'
    '인수자\\t김철수",'
)

ASSIGNEE_DOCUMENT = "\n".join([
    "품명\t규격\t수량\t단가\t공급가액",
    "배\t2kg\t3\t4,000\t12,000",
    "5,000\t10,000",
    "사과\t1kg\t2",
    "귤\t1.5kg\t1\t9,000\t9,000",
    "합계\t31,000",
    "인수자\t김철수",
])


class TestInvoiceTablePipeline(unittest.TestCase):
    """Test cases for InvoiceTablePipeline."""

    def setUp(self):
        self.pipeline = InvoiceTablePipeline()

    def test_banner_document(self):
        result = self.pipeline.process_to_dict(BANNER_DOCUMENT)
        self.assertEqual(result["cleanedRows"], [
            "깐마늘-1kg | 3 | 12,000 | 36,000",
            "양파 20kg | 2 | 30,000 | 60,000 | 6,000",
            "대파 | 1단 | 4 | 2,500 | 10,000",
        ])
        self.assertEqual(result["parsedItems"], [
            {"item": "깐마늘", "specification": "1kg", "quantity": 3,
             "unitPrice": 12000, "supplyAmount": 36000, "vat": 3600},
            {"item": "양파", "specification": "20kg", "quantity": 2,
             "unitPrice": 30000, "supplyAmount": 60000, "vat": 6000},
            {"item": "대파", "specification": "1단", "quantity": 4,
             "unitPrice": 2500, "supplyAmount": 10000, "vat": 1000},
        ])

    def test_banner_document_schema_validation(self):
        validation = self.pipeline.process_to_dict(BANNER_DOCUMENT)["schemaValidation"]
        self.assertEqual(validation["validCount"], 3)
        self.assertEqual(validation["invalidCount"], 0)
        self.assertEqual(validation["invalidRows"], [])
        first, second, third = validation["validRows"]
        self.assertEqual(first, {
            "item": "깐마늘-1kg", "specification": None, "quantity": "3",
            "unitPrice": "12,000", "supplyAmount": "36,000", "vat": 3600,
        })
        # VAT captured on the invoice is kept as-is
        self.assertEqual(second["vat"], "6,000")
        self.assertEqual(third["specification"], "1단")
        self.assertEqual(third["vat"], 1000)

    def test_assignee_document_redistributes_numeric_line(self):
        result = self.pipeline.process(ASSIGNEE_DOCUMENT)
        self.assertEqual(result.cleaned_rows, [
            "배 | 2kg | 3 | 4,000 | 12,000",
            "사과 | 1kg | 2 | 5,000 | 10,000",
            "귤 | 1.5kg | 1 | 9,000 | 9,000",
        ])
        self.assertEqual(result.table_slice.end, 4)
        apple = result.parsed_items[1]
        self.assertEqual((apple.item, apple.specification, apple.quantity), ("사과", "1kg", 2))
        self.assertEqual((apple.unit_price, apple.supply_amount, apple.vat), (5000, 10000, 1000))
        self.assertEqual(result.parsed_items[2].specification, "1.5kg")
        self.assertEqual(len(result.validation.valid), 3)

    def test_no_header_yields_empty_result(self):
        result = self.pipeline.process("영수증\n합계\t10,000")
        self.assertEqual(result.to_dict(), {
            "parsedItems": [],
            "cleanedRows": [],
            "schemaValidation": {"validCount": 0, "invalidCount": 0, "validRows": [], "invalidRows": []},
        })
        self.assertEqual([d["code"] for d in result.diagnostics], [DiagnosticCode.NO_HEADER_FOUND])

    def test_no_footer_runs_to_end(self):
        result = self.pipeline.process("품명\t수량\t단가\t금액\n사과\t2\t5,000\t10,000")
        self.assertEqual(len(result.parsed_items), 1)
        self.assertIn(DiagnosticCode.NO_FOOTER_FOUND, [d["code"] for d in result.diagnostics])

    def test_rejected_and_invalid_rows_are_reported(self):
        text = "품명\t단가\n사과\t2\t12,000\t비고\n메모\t없음\n=== 이하여백 ==="
        result = self.pipeline.process(text)
        output = result.to_dict(include_diagnostics=True)
        self.assertEqual([i["item"] for i in output["parsedItems"]], ["사과"])
        self.assertIsNone(output["parsedItems"][0]["vat"])
        self.assertEqual(output["schemaValidation"]["invalidCount"], 2)
        self.assertEqual(output["schemaValidation"]["invalidRows"][1], {
            "row": "메모 | 없음",
            "issues": ["Insufficient columns: expected at least 4, got 2"],
        })
        codes = [d["code"] for d in output["diagnostics"]]
        self.assertEqual(codes.count(DiagnosticCode.ROW_REJECTED), 1)
        self.assertEqual(codes.count(DiagnosticCode.SCHEMA_INVALID), 2)

    def test_output_is_json_serializable(self):
        text = self.pipeline.process_to_json(BANNER_DOCUMENT)
        data = json.loads(text)
        self.assertEqual(set(data), {"parsedItems", "cleanedRows", "schemaValidation"})
        self.assertIn("깐마늘", text)

    def test_non_string_input(self):
        self.assertEqual(parse_invoice_text(None)["parsedItems"], [])

    def test_pipeline_is_reusable_across_documents(self):
        first = self.pipeline.process_to_dict(ASSIGNEE_DOCUMENT)
        self.pipeline.process_to_dict(BANNER_DOCUMENT)
        self.assertEqual(self.pipeline.process_to_dict(ASSIGNEE_DOCUMENT), first)


class TestRefinementPayload(unittest.TestCase):
    """Test cases for the refinement payload."""

    def test_payload_shape(self):
        result = InvoiceTablePipeline().process(BANNER_DOCUMENT)
        payload = build_refinement_payload(result)
        self.assertEqual(list(payload), ["vatCalculationExample", "schemaValidation", "parsedItems", "cleanedRows"])
        examples = payload["vatCalculationExample"]["examples"]
        self.assertEqual([e["vat"] for e in examples], [673, 13337, 1000])

    def test_payload_from_dict(self):
        data = parse_invoice_text(ASSIGNEE_DOCUMENT)
        payload = build_refinement_payload(data)
        self.assertEqual(payload["cleanedRows"], data["cleanedRows"])

    def test_prompt_embeds_payload(self):
        payload = build_refinement_payload(parse_invoice_text(BANNER_DOCUMENT))
        prompt = build_refinement_prompt(payload)
        self.assertIn("Output ONLY a valid JSON array", prompt)
        self.assertIn('"item": "깐마늘"', prompt)


if __name__ == '__main__':
    unittest.main()
