"""
AI menu extractors backed by an OpenAI-compatible chat completions API.

``VisionMenuExtractor`` sends the photo itself; ``TextMenuExtractor``
structures text that was already pulled out of a document.
"""

import base64
import logging
from typing import Optional

import httpx

from qrmenu.services.menu_extraction.base import (
    BaseMenuExtractor,
    ExtractedItem,
    MenuSource,
    parse_items_json,
)

logger = logging.getLogger(__name__)

ITEM_SCHEMA = """[
  {
    "name": "item name",
    "description": "item description (optional)",
    "price": 0.00,
    "currency": "INR",
    "category": "category name"
  }
]"""

RULES = """Rules:
- Price must be a number (not string) without currency symbols
- Description can be empty string if not available
- Currency is the 3-letter code implied by the menu ($ -> USD, ₹ or Rs -> INR, € -> EUR, £ -> GBP)
- Category should be one of: appetizers, mains, desserts, beverages, sides, or uncategorized
- Return ONLY the JSON array, no other text"""

VISION_PROMPT = (
    "Extract ALL menu items from this image. Return ONLY a valid JSON array "
    f"of objects with this exact structure:\n{ITEM_SCHEMA}\n\n{RULES}\n"
    "- Be thorough and extract every item you can see"
)

TEXT_PROMPT = (
    "Extract menu items from the following text. Return ONLY a valid JSON array "
    f"of objects with this exact structure:\n{ITEM_SCHEMA}\n\n{RULES}\n\nMenu text:\n"
)


class ChatCompletionsClient:
    """Minimal async client for ``POST {base}/chat/completions``."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.chat_endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout = timeout
        self.transport = transport

    async def complete(self, model: str, messages: list[dict], max_tokens: int = 3000) -> str:
        payload = {
            "model": model,
            "messages": messages,
            "temperature": 0.1,
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.chat_endpoint, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()

        return data["choices"][0]["message"]["content"] or ""


class VisionMenuExtractor(BaseMenuExtractor):

    def __init__(self, client: ChatCompletionsClient, model: str, default_currency: str = "INR"):
        self.client = client
        self.model = model
        self.default_currency = default_currency

    @property
    def name(self) -> str:
        return "ai_vision"

    async def try_extract_items(self, source: MenuSource) -> Optional[list[ExtractedItem]]:
        if not source.is_image or not source.content:
            return None

        image_url = f"data:{source.mimetype};base64,{base64.b64encode(source.content).decode('ascii')}"
        messages = [{
            "role": "user",
            "content": [
                {"type": "text", "text": VISION_PROMPT},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        }]

        try:
            reply = await self.client.complete(self.model, messages)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Vision extraction failed: {e}")
            return None

        return parse_items_json(reply, self.default_currency)


class TextMenuExtractor(BaseMenuExtractor):

    def __init__(self, client: ChatCompletionsClient, model: str, default_currency: str = "INR"):
        self.client = client
        self.model = model
        self.default_currency = default_currency

    @property
    def name(self) -> str:
        return "ai_text"

    async def try_extract_items(self, source: MenuSource) -> Optional[list[ExtractedItem]]:
        if not source.text or not source.text.strip():
            return None

        messages = [{"role": "user", "content": TEXT_PROMPT + source.text}]
        try:
            reply = await self.client.complete(self.model, messages, max_tokens=2000)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Text extraction failed: {e}")
            return None

        return parse_items_json(reply, self.default_currency)
