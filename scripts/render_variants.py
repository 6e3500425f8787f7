"""
Quick local helper: runs the variant pipeline on local images and writes every
variant to an output directory. This bypasses any upload/storage layer.
"""

from __future__ import annotations

import argparse
from pathlib import Path

# Ensure project root is importable when running from scripts/
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from variant_service.batch import process_batch
from variant_service.config import configure_logging, get_settings
from variant_service.profiles import USE_CASE_PRESETS, resolve_profile
from variant_service.worker_pool import shutdown_worker_pool


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render size/format variants for local images")
    parser.add_argument("inputs", nargs="+", help="Paths to the input images")
    parser.add_argument("--output", required=True, help="Directory to write variants into")
    parser.add_argument(
        "--use-case",
        default=None,
        choices=sorted(USE_CASE_PRESETS),
        help="Preset to start from (defaults to the configured use case)",
    )
    parser.add_argument("--formats", nargs="+", help="Override output formats")
    parser.add_argument("--sizes", nargs="+", help="Override size presets")
    parser.add_argument("--quality", type=int, help="Override quality (1-100)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    configure_logging(settings)

    input_paths = [Path(p) for p in args.inputs]
    for path in input_paths:
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")
    output_dir = Path(args.output)

    preset = resolve_profile(args.use_case or settings.default_use_case)
    overrides = {
        "formats": args.formats or preset.formats,
        "sizes": args.sizes or preset.sizes,
        "quality": args.quality if args.quality is not None else preset.quality,
    }

    try:
        results = process_batch([p.read_bytes() for p in input_paths], overrides, settings=settings)
    finally:
        shutdown_worker_pool()

    for path, item in zip(input_paths, results):
        if not item.success:
            print(f"{path.name}: rejected ({item.error_code}) {item.error}")
            continue
        target = output_dir / path.stem
        target.mkdir(parents=True, exist_ok=True)
        for key, variant in item.variants.items():
            out_path = target / f"{key}.{variant.extension}"
            out_path.write_bytes(variant.data)
            print(f"Wrote {variant.width}x{variant.height} {variant.content_type} to {out_path}")
        for failure in item.outcome.failures:
            print(f"{path.name}: skipped {failure.key} ({failure.code}) {failure.message}")


if __name__ == "__main__":
    main()
