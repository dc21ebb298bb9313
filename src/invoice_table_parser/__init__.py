"""
Invoice Table Parser

Reconstructs structured line-item tables from noisy OCR text of Korean invoices.
"""

__version__ = "1.0.0"

from .config import TemplateConfig
from .exceptions import ConfigurationError, InvoiceParserError, OCRInputError
from .models import ParsedItem, PipelineResult, ValidationRecord
from .pipeline import InvoiceTablePipeline, parse_invoice_text
from .row_parser import RowParser
from .row_sanitizer import NumericQueue, RowSanitizer
from .schema_validator import SchemaValidator
from .table_locator import TableLocator
from .text_normalizer import TextNormalizer
from .vat_calculator import calculate_vat

__all__ = [
    "TemplateConfig",
    "ConfigurationError",
    "InvoiceParserError",
    "OCRInputError",
    "ParsedItem",
    "PipelineResult",
    "ValidationRecord",
    "InvoiceTablePipeline",
    "parse_invoice_text",
    "RowParser",
    "NumericQueue",
    "RowSanitizer",
    "SchemaValidator",
    "TableLocator",
    "TextNormalizer",
    "calculate_vat",
]
