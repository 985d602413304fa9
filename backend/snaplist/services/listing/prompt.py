"""Prompt construction for LLM listing generation (pure, no I/O)."""

from __future__ import annotations

import logging

from snaplist.services.ai.vision.contracts import VisionAnalysis

from .contracts import CATEGORIES
from .keywords import extract_brands, extract_colors, extract_materials

logger = logging.getLogger(__name__)

MAX_PROMPT_LABELS = 10
MAX_PROMPT_OBJECTS = 8

LISTING_SYSTEM_PROMPT = (
    "You are an expert at creating compelling marketplace listings (like Facebook Marketplace, Craigslist, etc.). "
    "Create listings that are honest, appealing, and likely to sell quickly. "
    "Always maintain a friendly, trustworthy tone. Focus on benefits and condition.\n\n"
    "IMPORTANT: Respond with ONLY a valid JSON object. Do not include any markdown formatting, "
    "code blocks, or additional text.\n"
    "The JSON must contain exactly these fields: title, description, category, and estimatedPrice."
)


def build_prompt(analysis: VisionAnalysis, item_description: str | None = None) -> str:
    """Serialize *analysis* into the user prompt for the generation service.

    *item_description* is the seller's free-text hint; it is passed through
    as-is when present.
    """
    labels = [
        f"{label.description} (confidence: {label.score * 100:.1f}%)"
        for label in analysis.labels[:MAX_PROMPT_LABELS]
    ]
    objects = [obj.name for obj in analysis.objects[:MAX_PROMPT_OBJECTS]]
    detected_text = analysis.detected_text

    brands = extract_brands(detected_text)
    colors = extract_colors(analysis.labels)
    materials = extract_materials(analysis.labels)

    logger.debug("Prompt features: brands=%s colors=%s materials=%s", brands, colors, materials)

    sections = [
        "Create a marketplace listing for an item based on this AI vision analysis:",
        f"DETECTED LABELS: {', '.join(labels)}",
        f"DETECTED OBJECTS: {', '.join(objects)}",
        f'DETECTED TEXT: "{detected_text}"',
        f"DETECTED BRANDS: {', '.join(brands) if brands else 'None detected'}",
        f"COLORS: {', '.join(colors) if colors else 'Please infer likely colors from the item type'}",
        f"MATERIALS: {', '.join(materials)}",
    ]

    if item_description:
        sections.append(f"SELLER DESCRIPTION: {item_description}")

    sections.append(
        "ADDITIONAL CONTEXT:\n"
        "- This is for a person-to-person marketplace (like Facebook Marketplace)\n"
        "- Focus on condition, functionality, and appeal to buyers\n"
        "- Include pickup/delivery information\n"
        "- Be honest about condition while highlighting positives\n"
        "- If no clear colors were detected, please infer likely colors based on the item type and common variants\n"
        f"- Suggest appropriate category from: {', '.join(CATEGORIES)}"
    )
    sections.append("Create a compelling listing that would attract buyers while being truthful.")

    return "\n\n".join(sections)
