# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Shared fixtures for the variant service tests. Images are synthesised in
# memory with Pillow so the suite needs no binary fixtures on disk.
# =============================================================================

from io import BytesIO
import struct
import threading
import time
import zlib

import pytest
from PIL import Image

from variant_service.config import Settings, get_settings
from variant_service.worker_pool import get_worker_pool, shutdown_worker_pool

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def _encode(image: Image.Image, fmt: str) -> bytes:
    buf = BytesIO()
    image.save(buf, format=fmt)
    return buf.getvalue()


def _png_chunk(cid: bytes, data: bytes) -> bytes:
    return (
        struct.pack(">I", len(data))
        + cid
        + data
        + struct.pack(">I", zlib.crc32(cid + data) & 0xFFFFFFFF)
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(scope="session", autouse=True)
def _shutdown_pool_after_session():
    yield
    shutdown_worker_pool()


@pytest.fixture
def make_image():
    """Factory: encoded image bytes of the given size, format and mode."""

    def factory(width: int, height: int, fmt: str = "PNG", mode: str = "RGB") -> bytes:
        color = {"RGB": (200, 120, 40), "RGBA": (200, 120, 40, 128), "L": 128}.get(mode, 0)
        image = Image.new(mode, (width, height), color)
        return _encode(image, fmt)

    return factory


@pytest.fixture
def make_png_header():
    """Factory: a PNG holding only IHDR + IEND, declaring any width/height."""

    def factory(width: int, height: int) -> bytes:
        ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
        return b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", ihdr) + _png_chunk(b"IEND", b"")

    return factory


@pytest.fixture
def landscape_png(make_image) -> bytes:
    return make_image(2400, 1600)


@pytest.fixture
def small_jpeg(make_image) -> bytes:
    return make_image(640, 480, fmt="JPEG")


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def fast_timeout_settings() -> Settings:
    """Settings with deadlines short enough to trip in tests."""
    return Settings(metadata_timeout_seconds=0.5, transform_timeout_seconds=0.75)


def decode(data: bytes) -> Image.Image:
    image = Image.open(BytesIO(data))
    image.load()
    return image


@pytest.fixture
def open_image():
    return decode


@pytest.fixture
def make_banded_image():
    """Factory: PNG split into red / green / blue thirds along its long axis."""

    def factory(width: int, height: int) -> bytes:
        image = Image.new("RGB", (width, height))
        horizontal = width >= height
        length = width if horizontal else height
        third = length // 3
        for i, color in enumerate((RED, GREEN, BLUE)):
            start = i * third
            end = length if i == 2 else start + third
            box = (start, 0, end, height) if horizontal else (0, start, width, end)
            image.paste(color, box)
        return _encode(image, "PNG")

    return factory


@pytest.fixture
def saturated_pool():
    """Occupy every shared worker until the test finishes."""
    pool = get_worker_pool()
    release = threading.Event()
    blockers = [pool.submit(release.wait, 10.0) for _ in range(get_settings().worker_pool_size)]
    deadline = time.monotonic() + 5.0
    while not all(f.running() for f in blockers) and time.monotonic() < deadline:
        time.sleep(0.01)
    try:
        yield pool
    finally:
        release.set()
        for blocker in blockers:
            blocker.result()
