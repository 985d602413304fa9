"""Keyword extractors for brands, colors and materials (deterministic, no AI)."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from snaplist.services.ai.vision.contracts import LabelAnnotation

logger = logging.getLogger(__name__)

BRANDS: tuple[str, ...] = (
    "Apple", "Samsung", "Nike", "Adidas", "IKEA", "Fisher-Price", "Sony", "LG",
    "Microsoft", "Dell", "HP", "Canon", "Nikon", "Toyota", "Honda", "Ford",
    "Lego", "Barbie", "Disney", "Nintendo", "PlayStation", "Xbox", "Target",
    "Walmart", "Amazon", "Google", "Facebook", "Instagram", "TikTok",
)

PURE_COLORS: tuple[str, ...] = (
    "red", "blue", "green", "yellow", "orange", "purple", "pink",
    "black", "white", "gray", "grey", "brown", "beige", "tan", "navy",
    "turquoise", "cyan", "magenta", "maroon", "olive", "lime", "teal",
)

# Finishes that read like colors ("silver metallic") but describe the material.
METALLIC_FINISHES: tuple[str, ...] = (
    "silver", "gold", "bronze", "copper", "metallic", "chrome", "steel",
    "aluminum", "brass", "platinum", "iron",
)

MATERIALS: tuple[str, ...] = (
    "wood", "metal", "plastic", "glass", "fabric", "leather",
    "ceramic", "paper", "cardboard", "stone", "rubber",
)

COLOR_MIN_SCORE = 0.6
MAX_COLORS = 3
MAX_MATERIALS = 3

# Whole word, or the leading part of a compound ("blackboard").
_COLOR_PATTERNS: dict[str, re.Pattern[str]] = {
    color: re.compile(rf"\b{color}\b|^{color}(?=[a-z]|\s)") for color in PURE_COLORS
}


def extract_brands(text: str) -> list[str]:
    """Brands from ``BRANDS`` contained in *text* (case-insensitive substring), in table order."""
    haystack = (text or "").lower()
    return [brand for brand in BRANDS if brand.lower() in haystack]


def _next_to_finish(description: str, color: str) -> bool:
    return any(
        f"{color} {finish}" in description or f"{finish} {color}" in description
        for finish in METALLIC_FINISHES
    )


def extract_colors(labels: Iterable[LabelAnnotation]) -> list[str]:
    """Color words from confident labels, first-seen order, at most ``MAX_COLORS``."""
    found: list[str] = []
    for label in labels:
        if label.score < COLOR_MIN_SCORE:
            continue
        description = label.description.lower()
        for color, pattern in _COLOR_PATTERNS.items():
            if not pattern.search(description):
                continue
            if _next_to_finish(description, color):
                logger.debug("Skipping color %r in %r: metallic finish", color, description)
                continue
            if color not in found:
                found.append(color)
    return found[:MAX_COLORS]


def extract_materials(labels: Iterable[LabelAnnotation]) -> list[str]:
    """Lower-cased label descriptions that mention a material, at most ``MAX_MATERIALS``."""
    matches = [
        description
        for description in (label.description.lower() for label in labels)
        if any(material in description for material in MATERIALS)
    ]
    return matches[:MAX_MATERIALS]
