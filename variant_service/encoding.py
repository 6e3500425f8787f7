"""Output encoders, one per supported format."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Callable, Dict, Union

from PIL import Image

from .errors import UnsupportedFormat


class ImageFormat(str, Enum):
    WEBP = "webp"
    JPEG = "jpeg"
    PNG = "png"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


JPEG_QUALITY = 85


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def to_rgb_or_rgba(image: Image.Image) -> Image.Image:
    """Convert to RGB, or RGBA when the source carries transparency."""
    if image.mode in ("RGB", "RGBA"):
        return image
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def _save(image: Image.Image, fmt: str, **params) -> bytes:
    buf = BytesIO()
    image.save(buf, format=fmt, **params)
    return buf.getvalue()


@dataclass(frozen=True)
class WebpEncoding:
    quality: int
    effort: int = 6  # Pillow "method": 0 fast .. 6 smallest output

    format = ImageFormat.WEBP

    def encode(self, image: Image.Image) -> bytes:
        return _save(to_rgb_or_rgba(image), "WEBP", quality=self.quality, method=self.effort)


@dataclass(frozen=True)
class JpegEncoding:
    quality: int = JPEG_QUALITY
    progressive: bool = True
    optimize: bool = True

    format = ImageFormat.JPEG

    def encode(self, image: Image.Image) -> bytes:
        if image.mode not in ("RGB", "L"):
            # JPEG has no alpha channel.
            image = image.convert("RGB")
        return _save(
            image,
            "JPEG",
            quality=self.quality,
            progressive=self.progressive,
            optimize=self.optimize,
        )


@dataclass(frozen=True)
class PngEncoding:
    """Lossless PNG. Pillow's zlib encoder already picks a filter per row (adaptive filtering)."""

    compress_level: int = 8

    format = ImageFormat.PNG

    def encode(self, image: Image.Image) -> bytes:
        if image.mode not in ("1", "L", "LA", "I", "P", "RGB", "RGBA"):
            image = to_rgb_or_rgba(image)
        return _save(image, "PNG", compress_level=self.compress_level)


Encoding = Union[WebpEncoding, JpegEncoding, PngEncoding]

_ENCODERS: Dict[ImageFormat, Callable[[int], Encoding]] = {
    ImageFormat.WEBP: lambda quality: WebpEncoding(quality=quality),
    ImageFormat.JPEG: lambda quality: JpegEncoding(),
    ImageFormat.PNG: lambda quality: PngEncoding(),
}


def encoding_for(fmt: str, quality: int) -> Encoding:
    """
    Resolve a format tag into its encoder.

    WebP honours the requested quality; JPEG is pinned to ``JPEG_QUALITY``;
    PNG is lossless and ignores it.

    Raises:
        UnsupportedFormat: for tags outside webp/jpeg/png.
    """
    try:
        image_format = ImageFormat(str(fmt).lower())
    except ValueError as exc:
        raise UnsupportedFormat(str(fmt)) from exc
    return _ENCODERS[image_format](quality)


SIZE_REDUCTION_RATES = {
    ImageFormat.WEBP: 0.75,
    ImageFormat.JPEG: 0.6,
    ImageFormat.PNG: 0.3,
}


def estimate_size_reduction(fmt: str = "webp") -> float:
    """Rough fraction of bytes saved by re-encoding into ``fmt`` (0.5 when unknown)."""
    try:
        return SIZE_REDUCTION_RATES[ImageFormat(str(fmt).lower())]
    except ValueError:
        return 0.5
