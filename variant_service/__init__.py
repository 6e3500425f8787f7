"""
Image variant generation package.

Turns raw uploaded image bytes into a bounded set of resized, re-encoded
renditions (named size presets x output formats). Storage, transport and
persistence of the results are left to the caller.
"""

from .batch import BatchItemOutcome, process_batch
from .encoding import estimate_size_reduction
from .pipeline import ProcessingOutcome, process_image
from .profiles import ProcessingOptions, resolve_profile

__all__ = [
    "BatchItemOutcome",
    "ProcessingOptions",
    "ProcessingOutcome",
    "estimate_size_reduction",
    "process_batch",
    "process_image",
    "resolve_profile",
]
