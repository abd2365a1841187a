"""
Menu Extraction Base Types

An extractor turns an uploaded menu (image bytes or plain text) into a
list of candidate items, or returns ``None`` when it has nothing to
offer so the chain can try the next one.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

CATEGORIES = ("appetizers", "mains", "desserts", "beverages", "sides", "uncategorized")

_FENCE = re.compile(r"```(?:json)?\s*")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass(frozen=True)
class ExtractedItem:
    name: str
    price: float
    category: str = "uncategorized"
    description: str = ""
    currency: str = "INR"


@dataclass(frozen=True)
class MenuSource:
    """What an extractor receives: raw bytes, or text pulled out of a document."""
    content: bytes = b""
    mimetype: str = ""
    text: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.mimetype.lower().startswith("image/")


class BaseMenuExtractor(ABC):
    """One candidate in the extraction chain."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Method label reported back to the client."""
        pass

    @abstractmethod
    async def try_extract_items(self, source: MenuSource) -> Optional[list[ExtractedItem]]:
        """Return items, or None when this extractor cannot help."""
        pass


def _coerce_item(raw: dict[str, Any], default_currency: str) -> ExtractedItem:
    try:
        price = float(raw.get("price") or 0)
    except (TypeError, ValueError):
        price = 0.0

    category = str(raw.get("category") or "uncategorized").strip().lower()
    if category not in CATEGORIES:
        category = "uncategorized"

    return ExtractedItem(
        name=str(raw.get("name") or "Unnamed Item").strip()[:100],
        description=str(raw.get("description") or "").strip()[:500],
        price=round(price, 2),
        currency=str(raw.get("currency") or default_currency).upper()[:3],
        category=category,
    )


def parse_items_json(text: Optional[str], default_currency: str = "INR") -> Optional[list[ExtractedItem]]:
    """
    Pull the JSON array out of a model reply.

    Models often wrap the array in markdown fences or add a sentence
    around it; anything that does not parse yields None.
    """
    if not text:
        return None

    cleaned = _FENCE.sub("", text.strip())
    match = _JSON_ARRAY.search(cleaned)
    if not match:
        return None

    try:
        raw_items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.debug(f"Model reply was not valid JSON: {e}")
        return None

    if not isinstance(raw_items, list):
        return None
    return [_coerce_item(raw, default_currency) for raw in raw_items if isinstance(raw, dict)]
