"""
Exceptions and diagnostic codes for the Invoice Table Parser.
"""


class InvoiceParserError(Exception):
    """Base class for errors raised by the invoice table parser."""


class ConfigurationError(InvoiceParserError):
    """Raised when a template configuration is malformed."""


class OCRInputError(InvoiceParserError):
    """Raised when an image or text source cannot be read or prepared."""


class DiagnosticCode:
    """Non-fatal conditions reported in a pipeline result instead of raised."""
    NO_HEADER_FOUND = "NoHeaderFound"
    NO_FOOTER_FOUND = "NoFooterFound"
    ROW_REJECTED = "RowRejected"
    SCHEMA_INVALID = "SchemaInvalid"
