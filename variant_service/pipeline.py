"""
High-level variant generation pipeline.

`process_image` is the main entry point used by upload handlers and by the
batch orchestrator. It keeps orchestration simple:
bytes in -> metadata inspection -> job planning -> concurrent transforms ->
variant map + failure list out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from . import config
from .errors import ProcessingTimeout, TransformFailed, VariantJobError
from .inspection import ImageMetadata, inspect_image
from .planner import TransformJob, plan_jobs
from .profiles import ProcessingOptions, coerce_options
from .transform import Variant, render_variant
from .worker_pool import SupervisedTask, submit_with_deadline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobFailure:
    key: str
    size_name: str
    format: str
    code: str
    message: str


@dataclass
class ProcessingOutcome:
    metadata: ImageMetadata
    variants: Dict[str, Variant] = field(default_factory=dict)
    failures: List[JobFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        # Reaching an outcome at all means metadata validation passed.
        return True

    @property
    def buffers(self) -> Dict[str, bytes]:
        return {key: variant.data for key, variant in self.variants.items()}

    @property
    def missing_keys(self) -> List[str]:
        return [failure.key for failure in self.failures]


def _ensure_bytes(image_bytes: Any) -> bytes:
    if isinstance(image_bytes, bytes):
        return image_bytes
    if isinstance(image_bytes, (bytearray, memoryview)):
        return bytes(image_bytes)
    raise TypeError(f"image buffer must be bytes-like, got {type(image_bytes).__name__}")


def _collect(job: TransformJob, task: SupervisedTask) -> Variant:
    try:
        return task.result()
    except TimeoutError as exc:
        raise ProcessingTimeout(job.key, task.timeout) from exc
    except VariantJobError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected error rendering %s", job.key)
        raise TransformFailed(f"Failed to render {job.key}: {exc}", details={"key": job.key}) from exc


def process_image(
    image_bytes: bytes,
    options: Union[ProcessingOptions, Mapping[str, Any], None] = None,
    settings: Optional[config.Settings] = None,
) -> ProcessingOutcome:
    """
    Full pipeline from raw bytes to encoded variants.

    Individual variant failures are recorded in ``outcome.failures`` and
    never abort sibling variants.

    Raises:
        InvalidOptions: when ``options`` are malformed.
        TypeError: when ``image_bytes`` is not bytes-like.
        ImageRejected: (DecodeTimeout, DecodeError, InvalidImage,
            ImageTooLarge) when the image fails inspection.
    """
    settings = settings or config.get_settings()
    options = coerce_options(options, settings=settings)
    image_bytes = _ensure_bytes(image_bytes)

    metadata = inspect_image(image_bytes, settings=settings)
    jobs = plan_jobs(options.sizes, options.formats, metadata, options.quality)

    # Fan out every job first so they run in parallel, then collect in plan order.
    tasks = [
        (
            job,
            submit_with_deadline(
                render_variant,
                image_bytes,
                job,
                timeout=settings.transform_timeout_seconds,
                queue_timeout=settings.queue_timeout_seconds,
            ),
        )
        for job in jobs
    ]

    outcome = ProcessingOutcome(metadata=metadata)
    for job, task in tasks:
        try:
            outcome.variants[job.key] = _collect(job, task)
        except VariantJobError as exc:
            logger.warning("Failed to process %s (%s): %s", job.size_name, job.format, exc.message)
            outcome.failures.append(
                JobFailure(
                    key=job.key,
                    size_name=job.size_name,
                    format=job.format,
                    code=exc.code,
                    message=exc.message,
                )
            )

    logger.info(
        "Generated %d/%d variants (%dx%d)",
        len(outcome.variants),
        len(jobs),
        metadata.width,
        metadata.height,
    )
    return outcome
