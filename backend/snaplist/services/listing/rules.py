"""Deterministic listing rules (no AI): category table, price tiers, templates."""

from __future__ import annotations

import logging
import random

from snaplist.services.ai.vision.contracts import VisionAnalysis

from .contracts import DEFAULT_CATEGORY, MAX_DETECTED_ITEMS, ListingDraft
from .keywords import extract_brands

logger = logging.getLogger(__name__)

# Ordered: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Baby & Kids", ("toy", "baby", "child", "kid", "infant", "toddler", "stroller", "crib", "doll", "game")),
    ("Electronics", ("phone", "computer", "laptop", "tablet", "electronic", "device", "camera", "headphone", "speaker")),
    ("Home & Garden", ("furniture", "chair", "table", "lamp", "vase", "plant", "kitchen", "home", "decor", "appliance")),
    ("Clothing", ("shirt", "pants", "dress", "shoe", "clothing", "apparel", "fashion", "jacket", "hat")),
    ("Sports", ("ball", "sport", "equipment", "fitness", "exercise", "bike", "bicycle", "golf", "tennis")),
    ("Books & Media", ("book", "magazine", "cd", "dvd", "media", "novel", "textbook")),
    ("Vehicles", ("car", "truck", "motorcycle", "vehicle", "auto", "boat")),
    ("Tools", ("tool", "hammer", "drill", "saw", "wrench", "equipment")),
    ("Collectibles", ("collectible", "vintage", "antique", "rare", "signed")),
]

# Category -> four price tiers.
PRICE_TIERS: dict[str, tuple[str, str, str, str]] = {
    "Baby & Kids": ("$10", "$20", "$35", "$50"),
    "Electronics": ("$25", "$75", "$150", "$300"),
    "Home & Garden": ("$15", "$35", "$65", "$100"),
    "Clothing": ("$8", "$15", "$25", "$40"),
    "Sports": ("$20", "$45", "$75", "$120"),
    "Books & Media": ("$3", "$8", "$15", "$25"),
    "Vehicles": ("$500", "$1500", "$3500", "$8000"),
    "Tools": ("$15", "$35", "$75", "$150"),
    "Collectibles": ("$20", "$50", "$100", "$250"),
}

CONDITION = "Great Condition"
MAX_FEATURES = 3
BRAND_TEXT_MIN_LENGTH = 10

CLOSING = (
    "From a clean, smoke-free home. Happy to answer questions or provide additional photos. "
    "Available for pickup or can meet at a safe public location."
)


def classify_category(items: list[str]) -> str:
    """Return the first table category whose keywords appear in any of *items*."""
    lowered = [item.lower() for item in items]
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in item for item in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def price_tiers(category: str) -> tuple[str, ...]:
    return PRICE_TIERS.get(category) or PRICE_TIERS[DEFAULT_CATEGORY]


def estimate_price(category: str, rng: random.Random | None = None) -> str:
    """Pick one of the category's four price tiers uniformly at random."""
    return (rng or random).choice(price_tiers(category))


def generate_title(items: list[str], detected_text: str) -> str:
    main_item = items[0] if items else "Item"
    brands = extract_brands(detected_text)
    if brands:
        return f"{brands[0]} {main_item} - {CONDITION}"
    return f"{main_item} - {CONDITION} - Must See!"


def condition_clause(analysis: VisionAnalysis) -> str:
    """Condition sentence from the mean score of the top three labels ("" if none applies)."""
    top = analysis.labels[:3]
    if not top:
        return ""
    avg = sum(label.score for label in top) / len(top)
    if avg >= 0.9:
        return "Excellent condition with clear details visible. "
    if avg >= 0.7:
        return "Good condition with normal signs of use. "
    return ""


def generate_description(analysis: VisionAnalysis) -> str:
    main_item = analysis.labels[0].description if analysis.labels else "item"
    features = ", ".join(label.description for label in analysis.labels[1 : 1 + MAX_FEATURES])
    detected_text = analysis.detected_text

    parts = [f"This {main_item.lower()} is in great condition and ready for its next home! "]

    if features:
        parts.append(f"Notable features include {features}. ")

    if len(detected_text) > BRAND_TEXT_MIN_LENGTH:
        brands = extract_brands(detected_text)
        if brands:
            parts.append(f"Brand: {brands[0]}. ")

    parts.append(condition_clause(analysis))
    parts.append(CLOSING)
    return "".join(parts)


def generate_deterministic_listing(
    analysis: VisionAnalysis,
    rng: random.Random | None = None,
) -> ListingDraft:
    """Compose a complete draft from vision output alone. Never fails."""
    detected_items = analysis.top_labels(MAX_DETECTED_ITEMS)
    category = classify_category(detected_items)

    draft = ListingDraft(
        title=generate_title(detected_items, analysis.detected_text),
        description=generate_description(analysis),
        category=category,
        price=estimate_price(category, rng),
        detected_items=detected_items,
    )
    logger.info("Deterministic listing: category=%s price=%s", draft.category, draft.price)
    return draft
