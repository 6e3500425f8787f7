"""
Error taxonomy for variant generation.

Two severities:
 - ``ImageRejected`` subclasses are fatal for one image. They come from the
   metadata inspection stage and abort that image's outcome.
 - ``VariantJobError`` subclasses are soft. They cost exactly one variant and
   are recorded alongside an otherwise successful outcome.

``InvalidOptions`` is a caller bug rather than a data problem and is the only
error that fails a whole batch call.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VariantServiceError(Exception):
    """Base exception carrying a machine-readable code and optional details."""

    code = "VARIANT_SERVICE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            result["details"] = self.details
        return result


class InvalidOptions(VariantServiceError, ValueError):
    """Raised when processing options are malformed."""

    code = "INVALID_OPTIONS"


# -----------------------------------------------------------------------------
# Fatal (per image)
# -----------------------------------------------------------------------------


class ImageRejected(VariantServiceError):
    """Base for errors that abort processing of a single image."""

    code = "IMAGE_REJECTED"


class DecodeTimeout(ImageRejected):
    code = "DECODE_TIMEOUT"

    def __init__(self, timeout: float):
        super().__init__(
            f"Metadata extraction timed out after {timeout:g}s",
            details={"timeout_seconds": timeout},
        )


class DecodeError(ImageRejected):
    code = "DECODE_ERROR"


class InvalidImage(ImageRejected):
    code = "INVALID_IMAGE"


class ImageTooLarge(ImageRejected):
    code = "IMAGE_TOO_LARGE"


# -----------------------------------------------------------------------------
# Soft (per variant job)
# -----------------------------------------------------------------------------


class VariantJobError(VariantServiceError):
    """Base for errors scoped to one (size, format) job."""

    code = "VARIANT_JOB_ERROR"


class ProcessingTimeout(VariantJobError):
    code = "PROCESSING_TIMEOUT"

    def __init__(self, key: str, timeout: float):
        super().__init__(
            f"Processing timeout for {key} after {timeout:g}s",
            details={"key": key, "timeout_seconds": timeout},
        )


class EmptyOutput(VariantJobError):
    code = "EMPTY_OUTPUT"

    def __init__(self, key: str):
        super().__init__(f"Empty buffer generated for {key}", details={"key": key})


class UnsupportedFormat(VariantJobError):
    code = "UNSUPPORTED_FORMAT"

    def __init__(self, fmt: str):
        super().__init__(f"Unsupported format: {fmt}", details={"format": fmt})


class TransformFailed(VariantJobError):
    """Any other exception raised while resizing or encoding one variant."""

    code = "TRANSFORM_FAILED"
