#!/usr/bin/env python3
"""
Image preparation before OCR.

OCR services recognize Korean invoice photos best when the JPEG is close to
1MB: large photos are downscaled, small ones upscaled with LANCZOS.
"""

import os
import math
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from .exceptions import OCRInputError

logger = logging.getLogger(__name__)

TARGET_BYTES = 980 * 1024
LOWER_BYTES = 900 * 1024
UPPER_BYTES = 1024 * 1024


def _save_jpeg(image: Image.Image, path: str, quality: int, subsampling: int) -> None:
    image.convert('RGB').save(path, 'JPEG', quality=quality, progressive=True, subsampling=subsampling)


def prepare_image(image_path: Union[str, Path], target_bytes: int = TARGET_BYTES,
                  lower: int = LOWER_BYTES, upper: int = UPPER_BYTES) -> str:
    """
    Resize an image towards ``target_bytes``.

    Returns the original path when its size is already within [lower, upper],
    otherwise the path of a temporary JPEG written next to the source.
    """
    image_path = str(image_path)
    try:
        size = os.path.getsize(image_path)
    except OSError as e:
        raise OCRInputError(f"Image file not found: {image_path}") from e

    logger.info(f"Original image size: {size / (1024 * 1024):.2f} MB")
    if lower <= size <= upper:
        logger.info("Image is already near the target size, no resizing needed")
        return image_path

    ratio = math.sqrt(target_bytes / size) if size else 1.0
    fd, temp_path = tempfile.mkstemp(prefix='resized_', suffix='.jpg', dir=os.path.dirname(image_path) or None)
    os.close(fd)

    try:
        with Image.open(image_path) as image:
            new_size = (max(1, int(image.width * ratio)), max(1, int(image.height * ratio)))
            if size > upper:
                logger.info(f"Downscaling image to {new_size[0]}x{new_size[1]}")
                resized = image.copy()
                resized.thumbnail(new_size)
                _save_jpeg(resized, temp_path, quality=88, subsampling=2)
                if os.path.getsize(temp_path) > upper:
                    logger.info("First attempt still too large, reducing quality")
                    _save_jpeg(resized, temp_path, quality=82, subsampling=2)
            else:
                logger.info(f"Upscaling image to {new_size[0]}x{new_size[1]} for better OCR quality")
                resized = image.resize(new_size, Image.LANCZOS)
                _save_jpeg(resized, temp_path, quality=95, subsampling=0)
    except (OSError, UnidentifiedImageError) as e:
        os.remove(temp_path)
        raise OCRInputError(f"Could not resize image {image_path}: {e}") from e

    logger.info(f"Resized image size: {os.path.getsize(temp_path) / (1024 * 1024):.2f} MB")
    return temp_path


class PreparedImage:
    """Context manager yielding a prepared image path; removes the temporary copy on exit."""

    def __init__(self, image_path: Union[str, Path], **kwargs):
        self.image_path = str(image_path)
        self.kwargs = kwargs
        self.path: Optional[str] = None

    def __enter__(self) -> str:
        self.path = prepare_image(self.image_path, **self.kwargs)
        return self.path

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.path and self.path != self.image_path and os.path.exists(self.path):
            try:
                os.remove(self.path)
            except OSError as e:
                logger.warning(f"Could not remove temporary image {self.path}: {e}")
