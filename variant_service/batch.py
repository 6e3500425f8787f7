"""
Batch orchestration over many uploaded images.

Each image runs the full single-image pipeline on a per-batch coordinator
thread. Coordinators only wait on results; the decode/encode work itself is
queued on the shared worker pool, which bounds peak memory across the whole
batch. Storage and queuing concerns are left to the caller so this can be
embedded into any worker framework.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from . import config
from .errors import ImageRejected
from .pipeline import ProcessingOutcome, process_image
from .profiles import ProcessingOptions, coerce_options
from .transform import Variant

logger = logging.getLogger(__name__)


@dataclass
class BatchItemOutcome:
    index: int
    success: bool
    outcome: Optional[ProcessingOutcome] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def variants(self) -> Dict[str, Variant]:
        return self.outcome.variants if self.outcome is not None else {}


def _process_one(
    index: int,
    image_bytes: bytes,
    options: ProcessingOptions,
    settings: config.Settings,
) -> BatchItemOutcome:
    if not isinstance(image_bytes, (bytes, bytearray, memoryview)):
        message = f"image buffer must be bytes-like, got {type(image_bytes).__name__}"
        logger.warning("Failed to process image %d: %s", index, message)
        return BatchItemOutcome(index=index, success=False, error=message, error_code="INVALID_BUFFER")

    try:
        outcome = process_image(image_bytes, options, settings=settings)
    except ImageRejected as exc:
        logger.warning("Failed to process image %d: %s", index, exc.message)
        return BatchItemOutcome(index=index, success=False, error=exc.message, error_code=exc.code)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error processing image %d", index)
        return BatchItemOutcome(index=index, success=False, error=str(exc), error_code="PROCESSING_ERROR")
    return BatchItemOutcome(index=index, success=True, outcome=outcome)


def process_batch(
    buffers: Sequence[bytes],
    options: Union[ProcessingOptions, Mapping[str, Any], None] = None,
    settings: Optional[config.Settings] = None,
) -> List[BatchItemOutcome]:
    """
    Process a batch of images concurrently.

    Returns one ``BatchItemOutcome`` per input, in input order. A rejected
    image is reported in its slot and never fails the call.

    Raises:
        InvalidOptions: when ``options`` are malformed (checked before any
            image is processed).
    """
    settings = settings or config.get_settings()
    options = coerce_options(options, settings=settings)
    buffers = list(buffers)
    if not buffers:
        return []

    logger.info("Processing batch of %d images", len(buffers))
    results: List[Optional[BatchItemOutcome]] = [None] * len(buffers)

    workers = min(len(buffers), settings.batch_concurrency)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="variant-batch") as executor:
        futures = {
            executor.submit(_process_one, index, image_bytes, options, settings): index
            for index, image_bytes in enumerate(buffers)
        }
        for future, index in futures.items():
            results[index] = future.result()

    succeeded = sum(1 for item in results if item is not None and item.success)
    logger.info("Batch finished: %d/%d images succeeded", succeeded, len(buffers))
    return results  # type: ignore[return-value]
