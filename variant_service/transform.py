"""
Resize + encode for a single variant job.

Each call opens its own ``PIL.Image`` over the shared source bytes, so jobs
running concurrently never touch each other's pixel data.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
import logging

from PIL import Image, ImageOps

from .encoding import ImageFormat, encoding_for, to_rgb_or_rgba
from .errors import EmptyOutput
from .planner import ResizeMode, TransformJob

logger = logging.getLogger(__name__)

RESAMPLE = Image.Resampling.LANCZOS


@dataclass(frozen=True)
class Variant:
    key: str
    size_name: str
    format: ImageFormat
    width: int
    height: int
    data: bytes

    @property
    def content_type(self) -> str:
        return self.format.content_type

    @property
    def extension(self) -> str:
        return self.format.value

    def __len__(self) -> int:
        return len(self.data)


def resize_for_job(image: Image.Image, job: TransformJob) -> Image.Image:
    """Apply the job's resize rule: exact cover box, or aspect-preserving width."""
    if job.mode is ResizeMode.COVER:
        return ImageOps.fit(image, job.target_size, method=RESAMPLE, centering=(0.5, 0.5))
    if image.size == job.target_size:
        return image
    return image.resize(job.target_size, RESAMPLE)


def render_variant(image_bytes: bytes, job: TransformJob) -> Variant:
    """
    Produce one encoded variant.

    Raises:
        UnsupportedFormat: when the job's format has no encoder.
        EmptyOutput: when encoding yields zero bytes.
    """
    encoding = encoding_for(job.format, job.quality)

    with Image.open(BytesIO(image_bytes)) as source:
        source.load()
        image = source
        if image.mode not in ("RGB", "RGBA", "L"):
            image = to_rgb_or_rgba(image)
        resized = resize_for_job(image, job)
        data = encoding.encode(resized)
        width, height = resized.size

    if not data:
        raise EmptyOutput(job.key)

    logger.debug("Processed %s (%s): %d bytes", job.size_name, job.format, len(data))
    return Variant(
        key=job.key,
        size_name=job.size_name,
        format=encoding.format,
        width=width,
        height=height,
        data=data,
    )
