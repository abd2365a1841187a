"""
Rule-based menu text parser.

Last link of the extraction chain: no network, no model, just price
patterns and category keywords. It never fails, it may just find nothing.
"""

import re
from typing import Optional

from qrmenu.services.menu_extraction.base import BaseMenuExtractor, ExtractedItem, MenuSource

PRICE_PATTERNS = (
    # With a currency symbol in front
    re.compile(r"(?:[$₹€£¥₣₤₱₩]\s*)(\d+(?:[.,]\d{1,2})?)"),
    # Decimal price, optionally followed by a currency
    re.compile(r"(\d+[.,]\d{2})(?:\s*(?:$|₹|€|£|USD|INR|EUR|GBP))?"),
    # Rs. / USD / INR prefix
    re.compile(r"(?:Rs\.?|USD|INR)\s*(\d+(?:[.,]\d{1,2})?)"),
    # "250 only", "250/-"
    re.compile(r"(\d+)(?:\.\d{2})?\s*(?:only|/-)", re.IGNORECASE),
)

CATEGORY_KEYWORDS = {
    "appetizers": ("appetizer", "starter", "soup", "salad"),
    "mains": ("main", "entrée", "entree", "curry", "rice", "noodles", "pasta", "pizza", "burger"),
    "desserts": ("dessert", "sweet", "ice cream", "cake", "pastry"),
    "beverages": ("drink", "beverage", "coffee", "tea", "juice", "smoothie", "shake"),
    "sides": ("side", "bread", "fries", "chips"),
}

_TRAILING_PUNCTUATION = re.compile(r"[-:.…]+$")
_LEADING_NUMBER = re.compile(r"^\d+\.?\s*")
_DOT_LEADERS = re.compile(r"\.{2,}")
_SHOUTED_HEADER = re.compile(r"[A-Z\s]{20,}")


def _category_header(line: str) -> Optional[str]:
    if len(line) >= 40:
        return None
    lowered = line.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def _find_price(line: str) -> Optional[tuple[float, int]]:
    """Return (price, start offset of the price match) using the last match of the first useful pattern."""
    for pattern in PRICE_PATTERNS:
        matches = list(pattern.finditer(line))
        if not matches:
            continue
        last = matches[-1]
        try:
            price = float(last.group(1).replace(",", "."))
        except ValueError:
            continue
        if price > 0:
            return price, last.start()
    return None


def _has_price(line: str) -> bool:
    return any(pattern.search(line) for pattern in PRICE_PATTERNS)


def parse_menu_text(text: str, default_currency: str = "INR") -> list[ExtractedItem]:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    items: list[ExtractedItem] = []
    current_category = "uncategorized"

    i = 0
    while i < len(lines):
        line = lines[i]
        i += 1
        if len(line) < 3:
            continue

        header = _category_header(line)
        if header:
            current_category = header
            continue

        found = _find_price(line)
        if not found:
            continue
        price, offset = found

        name = _TRAILING_PUNCTUATION.sub("", line[:offset].strip()).strip()
        name = _LEADING_NUMBER.sub("", name)
        name = _DOT_LEADERS.sub("", name).strip()
        if len(name) < 2 or _SHOUTED_HEADER.fullmatch(name):
            continue

        # Up to two following price-less lines become the description
        description_lines = []
        while len(description_lines) < 2 and i < len(lines):
            candidate = lines[i]
            if _has_price(candidate) or not (5 < len(candidate) < 200):
                break
            description_lines.append(candidate)
            i += 1

        items.append(ExtractedItem(
            name=name[:100],
            description=" ".join(description_lines)[:500],
            price=round(price, 2),
            category=current_category,
            currency=default_currency,
        ))

    return items


class HeuristicMenuParser(BaseMenuExtractor):

    def __init__(self, default_currency: str = "INR"):
        self.default_currency = default_currency

    @property
    def name(self) -> str:
        return "heuristic"

    async def try_extract_items(self, source: MenuSource) -> Optional[list[ExtractedItem]]:
        if not source.text:
            return None
        return parse_menu_text(source.text, self.default_currency)
