"""
Menu Extraction Factory

Builds the extraction chain from configuration. Without an AI key the
chain is just the heuristic parser.
"""

import logging

from qrmenu.core.config import Settings
from qrmenu.services.menu_extraction.base import BaseMenuExtractor, ExtractedItem, MenuSource
from qrmenu.services.menu_extraction.chain import ExtractionResult, MenuExtractionChain
from qrmenu.services.menu_extraction.heuristics import HeuristicMenuParser, parse_menu_text
from qrmenu.services.menu_extraction.llm import (
    ChatCompletionsClient,
    TextMenuExtractor,
    VisionMenuExtractor,
)

logger = logging.getLogger(__name__)


def build_extraction_chain(settings: Settings) -> MenuExtractionChain:
    image_extractors: list[BaseMenuExtractor] = []
    text_extractors: list[BaseMenuExtractor] = []

    if settings.vision_api_key:
        client = ChatCompletionsClient(settings.vision_api_key, settings.vision_api_base)
        image_extractors.append(VisionMenuExtractor(client, settings.vision_model, settings.default_currency))
        text_extractors.append(TextMenuExtractor(client, settings.text_model, settings.default_currency))
        logger.info(f"Menu extraction: AI enabled ({settings.vision_model})")
    else:
        logger.info("Menu extraction: no AI key configured, heuristic parser only")

    text_extractors.append(HeuristicMenuParser(settings.default_currency))
    return MenuExtractionChain(
        image_extractors,
        text_extractors,
        timeout=settings.menu_extraction_timeout_seconds,
    )


__all__ = [
    "build_extraction_chain",
    "BaseMenuExtractor",
    "ExtractedItem",
    "ExtractionResult",
    "MenuExtractionChain",
    "MenuSource",
    "HeuristicMenuParser",
    "parse_menu_text",
]
