#!/usr/bin/env python3
"""
Canonicalizes raw OCR text into clean lines with a uniform column separator.
"""

import re
import logging
from typing import Any, List

logger = logging.getLogger(__name__)

COLUMN_SEPARATOR = ' | '

_WRAPPER_RE = re.compile(r'^\s*"([\s\S]*)"\s*,?\s*$')
_MULTI_SPACE_RE = re.compile(r'\s{2,}')
_TRAILING_SEPARATOR_RE = re.compile(r'\s*\|\s*$')
_SEPARATOR_RE = re.compile(r'\s*\|\s*')


def coerce_text(raw: Any) -> str:
    """Turn any OCR payload into text without raising."""
    if raw is None:
        return ''
    if isinstance(raw, bytes):
        return raw.decode('utf-8', errors='replace')
    return raw if isinstance(raw, str) else str(raw)


def split_to_columns(line: str) -> List[str]:
    """Split a normalized line into trimmed, non-empty cells."""
    line = _TRAILING_SEPARATOR_RE.sub('', coerce_text(line))
    return [cell.strip() for cell in _SEPARATOR_RE.split(line) if cell.strip()]


def join_columns(cols: List[str]) -> str:
    return COLUMN_SEPARATOR.join(cols).strip()


class TextNormalizer:
    """Turns an OCR text blob into an ordered list of non-empty lines."""

    def normalize(self, raw: Any) -> List[str]:
        text = coerce_text(raw)

        # Literal escape sequences first, then real control characters
        text = text.replace('\\r\\n', '\n').replace('\\n', '\n').replace('\\t', '\t')
        text = text.replace('\r\n', '\n').replace('\r', '\n')

        # Strip "..." wrappers (optionally followed by a comma) until none is left
        match = _WRAPPER_RE.match(text)
        while match:
            text = match.group(1)
            match = _WRAPPER_RE.match(text)

        text = text.replace('\t', COLUMN_SEPARATOR)

        lines = []
        for line in text.split('\n'):
            line = _MULTI_SPACE_RE.sub(' ', line).strip()
            if line:
                lines.append(line)

        logger.debug(f"Normalized OCR text into {len(lines)} lines")
        return lines

    def normalize_text(self, raw: Any) -> str:
        """Same as normalize() but returns the lines joined by newlines."""
        return '\n'.join(self.normalize(raw))


def normalize_ocr_text(raw: Any) -> List[str]:
    """Convenience function to normalize OCR text into lines."""
    return TextNormalizer().normalize(raw)
