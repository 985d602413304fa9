"""
Generate a marketplace listing for a local image file.

Usage:
  export GOOGLE_CLOUD_API_KEY=...   # required
  export OPENAI_API_KEY=...         # optional, deterministic listing without it
  snaplist path/to/photo.jpg
  snaplist path/to/photo.jpg --description "barely used" --copy-text
  snaplist path/to/photo.jpg --deterministic --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import dataclasses
import json
import logging
import mimetypes
import random
import sys
from pathlib import Path

from snaplist.core.config import get_settings
from snaplist.services.listing.contracts import ListingResult
from snaplist.services.listing.errors import ListingError
from snaplist.services.listing.pipeline import ListingPipeline, PipelineConfig


def encode_image_file(path: str | Path) -> str:
    """Read *path* and return it as a ``data:image/<type>;base64,`` URI."""
    path = Path(path)
    mime, _ = mimetypes.guess_type(path.name)
    if not mime or not mime.startswith("image/"):
        mime = "image/jpeg"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def format_listing_text(result: ListingResult) -> str:
    """Clipboard-ready listing: title, description and price."""
    draft = result.draft
    return f"{draft.title}\n\n{draft.description}\n\nPrice: {draft.price}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="snaplist", description="Turn an item photo into a marketplace listing.")
    parser.add_argument("image", help="Path to the image file.")
    parser.add_argument("--description", default=None, help="Optional seller hint passed to the generator.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the deterministic price pick.")
    parser.add_argument("--deterministic", action="store_true", help="Skip the LLM even if a key is configured.")
    parser.add_argument("--copy-text", action="store_true", help="Print listing text instead of JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    config = PipelineConfig.from_settings(get_settings())
    if args.deterministic:
        config = dataclasses.replace(config, llm_api_key="")

    rng = random.Random(args.seed) if args.seed is not None else None
    pipeline = ListingPipeline(config, rng=rng)

    try:
        image_data = encode_image_file(args.image)
    except OSError as exc:
        print(f"Error: cannot read {args.image}: {exc}", file=sys.stderr)
        return 1

    try:
        result = asyncio.run(pipeline.run(image_data, item_description=args.description))
    except ListingError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.copy_text:
        print(format_listing_text(result))
    else:
        print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
