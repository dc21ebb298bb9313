#!/usr/bin/env python3
"""
Invoice table pipeline.

raw OCR text -> TextNormalizer -> TableLocator -> RowSanitizer
             -> RowParser + SchemaValidator -> VAT -> PipelineResult

The pipeline is a pure function of its input text: no I/O, no shared mutable
state, so one instance can serve many documents and threads.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from .config import CompiledTemplate, TemplateConfig, resolve_template
from .exceptions import DiagnosticCode
from .models import PipelineResult
from .row_parser import RowParser
from .row_sanitizer import RowSanitizer
from .schema_validator import SchemaValidator
from .table_locator import TableLocator
from .text_normalizer import TextNormalizer
from .vat_calculator import attach_vat, backfill_schema_vat

logger = logging.getLogger(__name__)


class InvoiceTablePipeline:
    """Runs every stage over one OCR text blob."""

    def __init__(self, config: Optional[Union[TemplateConfig, CompiledTemplate]] = None):
        self.template = resolve_template(config)
        self.config = self.template.config
        self.normalizer = TextNormalizer()
        self.locator = TableLocator(self.template)
        self.sanitizer = RowSanitizer(self.template)
        self.parser = RowParser(self.template)
        self.validator = SchemaValidator(self.template)

    def process(self, raw_text: Any) -> PipelineResult:
        diagnostics = []

        lines = self.normalizer.normalize(raw_text)
        table_slice = self.locator.slice_table(lines)

        if table_slice.start is None:
            diagnostics.append({
                'code': DiagnosticCode.NO_HEADER_FOUND,
                'detail': 'No unit-price header found; nothing to parse',
            })
            logger.warning("No table header found in OCR text")
        elif table_slice.end is None:
            diagnostics.append({
                'code': DiagnosticCode.NO_FOOTER_FOUND,
                'detail': f'No footer found; rows {table_slice.start}..{len(lines) - 1} used',
            })
            logger.info("No table footer found, using rows up to end of text")

        sanitized = self.sanitizer.clean(table_slice.rows)
        cleaned_rows = sanitized.kept

        parsed_items = []
        for line in cleaned_rows:
            item = self.parser.parse_line(line)
            if item is None:
                diagnostics.append({'code': DiagnosticCode.ROW_REJECTED, 'detail': line})
                continue
            parsed_items.append(item)
        attach_vat(parsed_items, self.config.vat_rate)

        report = self.validator.validate(cleaned_rows)
        for record in report.invalid:
            diagnostics.append({
                'code': DiagnosticCode.SCHEMA_INVALID,
                'detail': f"{record.row}: {'; '.join(record.issues)}",
            })
        valid_rows = [backfill_schema_vat(record.schema, self.config.vat_rate) for record in report.valid]

        logger.info(
            f"Parsed {len(parsed_items)} items from {len(cleaned_rows)} cleaned rows "
            f"({len(report.valid)} valid, {len(report.invalid)} invalid by schema)"
        )

        return PipelineResult(
            parsed_items=parsed_items,
            cleaned_rows=cleaned_rows,
            validation=report,
            valid_rows=valid_rows,
            table_slice=table_slice,
            diagnostics=diagnostics,
        )

    def process_to_dict(self, raw_text: Any, include_diagnostics: bool = False) -> Dict[str, Any]:
        return self.process(raw_text).to_dict(include_diagnostics=include_diagnostics)

    def process_to_json(self, raw_text: Any, include_diagnostics: bool = False, indent: int = 2) -> str:
        return json.dumps(self.process_to_dict(raw_text, include_diagnostics), indent=indent, ensure_ascii=False)


def parse_invoice_text(raw_text: Any, config: Optional[TemplateConfig] = None) -> Dict[str, Any]:
    """
    Convenience function: OCR text in, output contract dict out.

    Args:
        raw_text: OCR text for one image (escaped or quoted text is fine)
        config: optional template overrides

    Returns:
        {"parsedItems": [...], "cleanedRows": [...], "schemaValidation": {...}}
    """
    return InvoiceTablePipeline(config).process_to_dict(raw_text)
