"""Use-case presets and the validated options bundle."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from . import config
from .errors import InvalidOptions

logger = logging.getLogger(__name__)


USE_CASE_PRESETS = {
    "property": {
        "formats": ["webp"],
        "sizes": ["thumbnail", "medium", "large", "original"],
        "quality": 80,
    },
    "profile": {
        "formats": ["webp"],
        "sizes": ["thumbnail", "medium"],
        "quality": 85,
    },
    "document": {
        "formats": ["jpeg"],
        "sizes": ["medium", "original"],
        "quality": 90,
    },
}

FALLBACK_PRESET = {
    "formats": ["webp"],
    "sizes": ["original"],
    "quality": 80,
}

FORMAT_ALIASES = {"jpg": "jpeg"}


def _normalize_tags(values: List[str], aliases: Mapping[str, str]) -> List[str]:
    """Lowercase, alias and de-duplicate tags while keeping first-seen order."""
    seen: List[str] = []
    for raw in values:
        tag = str(raw).strip().lower()
        if not tag:
            raise ValueError("tags must be non-empty strings")
        tag = aliases.get(tag, tag)
        if tag not in seen:
            seen.append(tag)
    return seen


class ProcessingOptions(BaseModel):
    """
    Options for one image (or one batch).

    Defaults match the ``property`` preset. Format tags are only normalized
    here; tags outside webp/jpeg/png are allowed through and fail their own
    jobs as ``UnsupportedFormat`` during execution.
    """

    formats: List[str] = Field(
        default_factory=lambda: list(USE_CASE_PRESETS["property"]["formats"]),
        min_length=1,
    )
    sizes: List[str] = Field(
        default_factory=lambda: list(USE_CASE_PRESETS["property"]["sizes"]),
        min_length=1,
    )
    quality: int = Field(80, ge=1, le=100)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("formats")
    @classmethod
    def normalize_formats(cls, v: List[str]) -> List[str]:
        return _normalize_tags(v, FORMAT_ALIASES)

    @field_validator("sizes")
    @classmethod
    def normalize_sizes(cls, v: List[str]) -> List[str]:
        return _normalize_tags(v, {})


def resolve_profile(use_case: Optional[str] = "property") -> ProcessingOptions:
    """Return the default options bundle for a use-case tag. Never fails."""
    tag = (use_case or "").strip().lower()
    preset = USE_CASE_PRESETS.get(tag)
    if preset is None:
        if tag:
            logger.warning("profiles: unknown use case '%s', falling back to default", tag)
        preset = FALLBACK_PRESET
    return ProcessingOptions(**preset)


def coerce_options(
    options: Union[ProcessingOptions, Mapping[str, Any], None],
    settings: Optional[config.Settings] = None,
) -> ProcessingOptions:
    """
    Resolve caller-supplied options once at entry.

    Raises:
        InvalidOptions: when the options cannot be validated.
    """
    if isinstance(options, ProcessingOptions):
        return options
    if options is None:
        settings = settings or config.get_settings()
        return resolve_profile(settings.default_use_case)
    if not isinstance(options, Mapping):
        raise InvalidOptions(
            f"options must be ProcessingOptions, a mapping or None, got {type(options).__name__}"
        )
    try:
        return ProcessingOptions(**options)
    except ValidationError as exc:
        raise InvalidOptions(
            "Invalid processing options",
            details={"errors": [err["msg"] for err in exc.errors()]},
        ) from exc
    except TypeError as exc:
        # Non-string keys cannot be passed as keyword arguments.
        raise InvalidOptions(f"Invalid processing options: {exc}") from exc
