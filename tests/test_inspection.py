# =============================================================================
# tests/test_inspection.py - Metadata Inspection Tests
# =============================================================================
# Covers header parsing, dimension bounds and the metadata deadline.
# =============================================================================

import time

import pytest

from variant_service import inspection
from variant_service.config import Settings
from variant_service.errors import (
    DecodeError,
    DecodeTimeout,
    ImageRejected,
    ImageTooLarge,
    InvalidImage,
)
from variant_service.inspection import inspect_image, read_metadata, validate_dimensions


class TestReadMetadata:
    """Tests for read_metadata()."""

    def test_png(self, make_image):
        metadata = read_metadata(make_image(320, 240))
        assert metadata.size == (320, 240)
        assert metadata.source_format == "png"

    def test_jpeg(self, small_jpeg):
        metadata = read_metadata(small_jpeg)
        assert metadata.size == (640, 480)
        assert metadata.source_format == "jpeg"

    def test_header_only_is_enough(self, make_png_header):
        # No pixel data at all: dimensions come from IHDR alone.
        assert read_metadata(make_png_header(4000, 3000)).size == (4000, 3000)

    def test_empty_buffer(self):
        with pytest.raises(DecodeError):
            read_metadata(b"")

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError):
            read_metadata(b"definitely not an image")

    def test_decompression_bomb_reported_as_too_large(self, make_png_header):
        with pytest.raises(ImageTooLarge):
            read_metadata(make_png_header(20000, 20000))


class TestValidateDimensions:
    """Tests for validate_dimensions()."""

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (None, 100), (100, None)])
    def test_missing_dimensions(self, width, height):
        with pytest.raises(InvalidImage):
            validate_dimensions(width, height, 10000)

    @pytest.mark.parametrize("width,height", [(10001, 10), (10, 10001)])
    def test_too_large(self, width, height):
        with pytest.raises(ImageTooLarge) as exc_info:
            validate_dimensions(width, height, 10000)
        assert exc_info.value.details["max_dimension"] == 10000

    def test_bounds_are_inclusive(self):
        validate_dimensions(1, 1, 10000)
        validate_dimensions(10000, 10000, 10000)


class TestInspectImage:
    """Tests for inspect_image()."""

    def test_valid_image(self, make_image, settings):
        metadata = inspect_image(make_image(50, 40), settings=settings)
        assert metadata.size == (50, 40)

    def test_zero_width_header(self, make_png_header, settings):
        with pytest.raises((InvalidImage, DecodeError)):
            inspect_image(make_png_header(0, 100), settings=settings)

    def test_oversized_image(self, make_image, settings):
        with pytest.raises(ImageTooLarge):
            inspect_image(make_image(10001, 2), settings=settings)

    def test_configured_max_dimension(self, make_image):
        with pytest.raises(ImageTooLarge):
            inspect_image(make_image(300, 200), settings=Settings(max_dimension=256))

    def test_deadline(self, monkeypatch, make_image, fast_timeout_settings):
        def slow_read(image_bytes):
            time.sleep(2.0)
            return read_metadata(image_bytes)

        monkeypatch.setattr(inspection, "read_metadata", slow_read)
        with pytest.raises(DecodeTimeout) as exc_info:
            inspect_image(make_image(10, 10), settings=fast_timeout_settings)
        assert isinstance(exc_info.value, ImageRejected)
        assert exc_info.value.code == "DECODE_TIMEOUT"

    def test_deadline_with_saturated_pool(self, saturated_pool, make_image):
        started = time.monotonic()
        with pytest.raises(DecodeTimeout):
            inspect_image(make_image(10, 10), settings=Settings(metadata_timeout_seconds=0.5))
        assert time.monotonic() - started < 2.0
