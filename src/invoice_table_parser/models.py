"""
Data models for the Invoice Table Parser.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class KeywordHit:
    """One or more adjacent cells that together spell a target keyword."""
    row_index: int
    start_col: int
    end_col: int
    matched_text: str
    normalized_text: str


@dataclass
class FooterMarker:
    """End of the line-item table: an explicit banner or the assignee cell."""
    kind: str  # "marker" or "assignee"
    row_index: int
    col_index: Optional[int]
    value: str

    MARKER = "marker"
    ASSIGNEE = "assignee"


@dataclass
class TableSlice:
    """Rows between the header and the footer; start/end are inclusive indices."""
    start: Optional[int]
    end: Optional[int]
    rows: List[str] = field(default_factory=list)


@dataclass
class RemovedColumn:
    """A column dropped by the row sanitizer."""
    row_index: int
    col_index: int
    line: str
    column: str
    reason: str = "noise"


@dataclass
class SanitizeResult:
    kept: List[str] = field(default_factory=list)
    removed: List[RemovedColumn] = field(default_factory=list)


@dataclass
class ParsedItem:
    """A single extracted line item."""
    item: str
    specification: Optional[str]
    quantity: Optional[int]
    unit_price: int
    supply_amount: Optional[int]
    vat: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item": self.item,
            "specification": self.specification,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "supplyAmount": self.supply_amount,
            "vat": self.vat,
        }


@dataclass
class ValidationRecord:
    """Result of checking one cleaned row against the expected schema."""
    row_index: int
    row: str
    cols: List[str]
    col_count: int
    schema: Optional[Dict[str, Any]] = None
    issues: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


@dataclass
class ValidationReport:
    valid: List[ValidationRecord] = field(default_factory=list)
    invalid: List[ValidationRecord] = field(default_factory=list)


@dataclass
class PipelineResult:
    """Everything produced from one OCR document."""
    parsed_items: List[ParsedItem]
    cleaned_rows: List[str]
    validation: ValidationReport
    valid_rows: List[Dict[str, Any]]
    table_slice: Optional[TableSlice] = None
    diagnostics: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self, include_diagnostics: bool = False) -> Dict[str, Any]:
        """JSON-serializable output; field names are a stable contract."""
        result = {
            "parsedItems": [item.to_dict() for item in self.parsed_items],
            "cleanedRows": list(self.cleaned_rows),
            "schemaValidation": {
                "validCount": len(self.validation.valid),
                "invalidCount": len(self.validation.invalid),
                "validRows": [dict(row) for row in self.valid_rows],
                "invalidRows": [
                    {"row": record.row, "issues": list(record.issues)}
                    for record in self.validation.invalid
                ],
            },
        }
        if include_diagnostics:
            result["diagnostics"] = [dict(d) for d in self.diagnostics]
        return result
