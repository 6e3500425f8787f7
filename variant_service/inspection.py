"""
Metadata inspection for uploaded images.

Only the image header is parsed here: Pillow's ``Image.open`` is lazy, so
width, height and the declared format are available without decoding pixel
data. Bounds are validated before any variant work is planned.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from . import config
from .errors import DecodeError, DecodeTimeout, ImageTooLarge, InvalidImage
from .worker_pool import submit_with_deadline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageMetadata:
    width: int
    height: int
    source_format: Optional[str]

    @property
    def size(self):
        return self.width, self.height


def read_metadata(image_bytes: bytes) -> ImageMetadata:
    """
    Parse width, height and format from the image header.

    Raises:
        DecodeError: when the bytes are empty or not a recognizable image.
        ImageTooLarge: when Pillow refuses the header as a decompression bomb.
    """
    if not image_bytes:
        raise DecodeError("Invalid input buffer provided: buffer is empty")

    try:
        with Image.open(BytesIO(image_bytes)) as image:
            width, height = image.size
            source_format = image.format
    except Image.DecompressionBombError as exc:
        raise ImageTooLarge(f"Image too large: {exc}") from exc
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Invalid image data: {exc}") from exc

    return ImageMetadata(
        width=width,
        height=height,
        source_format=source_format.lower() if source_format else None,
    )


def validate_dimensions(width: Optional[int], height: Optional[int], max_dimension: int) -> None:
    """Reject missing/zero dimensions and anything beyond ``max_dimension``."""
    if not width or not height or width <= 0 or height <= 0:
        raise InvalidImage(
            "Invalid image: missing dimensions",
            details={"width": width, "height": height},
        )
    if width > max_dimension or height > max_dimension:
        raise ImageTooLarge(
            f"Image too large: maximum {max_dimension}x{max_dimension} pixels",
            details={"width": width, "height": height, "max_dimension": max_dimension},
        )


def inspect_image(image_bytes: bytes, settings: Optional[config.Settings] = None) -> ImageMetadata:
    """
    Read and validate metadata under the metadata deadline.

    Raises:
        DecodeTimeout, DecodeError, InvalidImage, ImageTooLarge
    """
    settings = settings or config.get_settings()
    timeout = settings.metadata_timeout_seconds

    # Header parsing is cheap, so the deadline covers queueing as well.
    task = submit_with_deadline(read_metadata, image_bytes, timeout=timeout, from_submission=True)
    try:
        metadata = task.result()
    except TimeoutError as exc:
        raise DecodeTimeout(timeout) from exc

    validate_dimensions(metadata.width, metadata.height, settings.max_dimension)
    logger.info(
        "Processing image: %dx%d, format: %s",
        metadata.width,
        metadata.height,
        metadata.source_format,
    )
    return metadata
