#!/usr/bin/env python3
"""
Tesseract OCR wrapper producing the raw text blob the pipeline consumes.
"""

import re
import logging
from pathlib import Path
from typing import Union

import pytesseract
from PIL import Image, UnidentifiedImageError

from .exceptions import OCRInputError
from .image_prep import PreparedImage

logger = logging.getLogger(__name__)

_CELL_GAP_RE = re.compile(r' {2,}')


def spacing_to_tabs(text: str) -> str:
    """Turn the wide gaps Tesseract leaves between table cells into tabs."""
    return '\n'.join(_CELL_GAP_RE.sub('\t', line.strip()) for line in text.splitlines())


class OCREngine:
    """Runs Tesseract on an invoice image (Korean by default)."""

    def __init__(self, lang: str = 'kor', psm: int = 6, prepare: bool = True):
        self.lang = lang
        self.psm = psm
        self.prepare = prepare

    @property
    def tesseract_config(self) -> str:
        # Keep the gaps between table cells so columns survive as runs of spaces
        return f'--psm {self.psm} -c preserve_interword_spaces=1'

    def _recognize(self, image_path: str) -> str:
        try:
            with Image.open(image_path) as image:
                return pytesseract.image_to_string(image, lang=self.lang, config=self.tesseract_config)
        except (OSError, UnidentifiedImageError) as e:
            raise OCRInputError(f"Could not read image {image_path}: {e}") from e
        except pytesseract.TesseractNotFoundError as e:
            raise OCRInputError("Tesseract is not installed or not on PATH") from e
        except pytesseract.TesseractError as e:
            raise OCRInputError(f"Tesseract failed on {image_path}: {e}") from e

    def extract_text(self, image_path: Union[str, Path]) -> str:
        image_path = str(image_path)
        if not self.prepare:
            text = self._recognize(image_path)
        else:
            with PreparedImage(image_path) as prepared_path:
                text = self._recognize(prepared_path)
        text = spacing_to_tabs(text)
        logger.info(f"OCR extracted {len(text)} characters from {image_path}")
        return text


def extract_text_from_image(image_path: Union[str, Path], lang: str = 'kor') -> str:
    """Convenience function to OCR one invoice image."""
    return OCREngine(lang=lang).extract_text(image_path)
