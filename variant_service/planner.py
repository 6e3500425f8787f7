"""
Expansion of requested sizes x formats into concrete transform jobs.

Fixed-box sizes are rendered "cover" style (scale to fill, center crop) so the
output is exactly the box. Width-only sizes keep the source aspect ratio and
are never enlarged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .inspection import ImageMetadata

logger = logging.getLogger(__name__)


class ResizeMode(str, Enum):
    COVER = "cover"
    WIDTH = "width"


@dataclass(frozen=True)
class SizeProfile:
    width: int
    height: Optional[int] = None  # None: keep aspect ratio, no upscaling

    @property
    def mode(self) -> ResizeMode:
        return ResizeMode.COVER if self.height else ResizeMode.WIDTH


SIZE_PROFILES: Dict[str, SizeProfile] = {
    "thumbnail": SizeProfile(300, 200),
    "medium": SizeProfile(800, 600),
    "large": SizeProfile(1200, 900),
    "original": SizeProfile(1920),
}


@dataclass(frozen=True)
class TransformJob:
    size_name: str
    format: str
    quality: int
    target_width: int
    target_height: int
    mode: ResizeMode
    key: str

    @property
    def target_size(self) -> Tuple[int, int]:
        return self.target_width, self.target_height


def variant_key(size_name: str, fmt: str, distinct_formats: int) -> str:
    """``thumbnail`` for single-format requests, ``thumbnail_webp`` otherwise."""
    return f"{size_name}_{fmt}" if distinct_formats > 1 else size_name


def resolve_dimensions(profile: SizeProfile, metadata: ImageMetadata) -> Tuple[int, int]:
    """Output dimensions for ``profile`` applied to an image of ``metadata`` size."""
    if profile.mode is ResizeMode.COVER:
        return profile.width, profile.height

    if metadata.width <= profile.width:
        return metadata.width, metadata.height
    scale = profile.width / metadata.width
    return profile.width, max(1, round(metadata.height * scale))


def plan_jobs(
    sizes: Iterable[str],
    formats: Iterable[str],
    metadata: ImageMetadata,
    quality: int,
    profiles: Mapping[str, SizeProfile] = SIZE_PROFILES,
) -> List[TransformJob]:
    """
    Build one job per known (size, format) pair, size-major.

    Unknown size names contribute no jobs.
    """
    formats = list(dict.fromkeys(formats))
    distinct_formats = len(formats)

    jobs: List[TransformJob] = []
    for size_name in dict.fromkeys(sizes):
        profile = profiles.get(size_name)
        if profile is None:
            logger.warning("Unknown size variant: %s", size_name)
            continue

        width, height = resolve_dimensions(profile, metadata)
        for fmt in formats:
            jobs.append(
                TransformJob(
                    size_name=size_name,
                    format=fmt,
                    quality=quality,
                    target_width=width,
                    target_height=height,
                    mode=profile.mode,
                    key=variant_key(size_name, fmt, distinct_formats),
                )
            )
    logger.debug("Planned %d variant jobs", len(jobs))
    return jobs
