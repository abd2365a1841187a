"""
Menu extraction chain.

Images go to the image extractors (vision models). PDFs have their text
pulled out with pypdf and go to the text extractors, which end with the
heuristic parser. Every attempt is bounded by a timeout; a slow or
failing provider just hands over to the next candidate.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional, Sequence

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from qrmenu.core.exceptions import ValidationError
from qrmenu.services.menu_extraction.base import BaseMenuExtractor, ExtractedItem, MenuSource

logger = logging.getLogger(__name__)

PDF_MIMETYPE = "application/pdf"
MIN_PDF_TEXT = 10


@dataclass
class ExtractionResult:
    items: list[ExtractedItem] = field(default_factory=list)
    method: str = "none"
    extracted_text: Optional[str] = None

    @property
    def needs_manual_review(self) -> bool:
        # Extracted menus are always confirmed by the owner before saving
        return True


def extract_pdf_text(content: bytes) -> str:
    reader = PdfReader(BytesIO(content))
    pages = []
    for page in reader.pages:
        page_text = page.extract_text()
        if page_text:
            pages.append(page_text)
    return "\n".join(pages)


class MenuExtractionChain:

    def __init__(
        self,
        image_extractors: Sequence[BaseMenuExtractor],
        text_extractors: Sequence[BaseMenuExtractor],
        timeout: float = 25.0,
    ):
        self.image_extractors = list(image_extractors)
        self.text_extractors = list(text_extractors)
        self.timeout = timeout

    async def extract(self, content: bytes, mimetype: str) -> ExtractionResult:
        if not content:
            raise ValidationError("Please upload a file")

        mimetype = (mimetype or "").lower()
        if mimetype.startswith("image/"):
            source = MenuSource(content=content, mimetype=mimetype)
            found = await self._first_hit(self.image_extractors, source)
            if found:
                return ExtractionResult(items=found[1], method=found[0])
            logger.info("No image extractor produced items; manual entry required")
            return ExtractionResult()

        if mimetype == PDF_MIMETYPE:
            text = await self._pdf_text(content)
            found = await self._first_hit(self.text_extractors, MenuSource(mimetype=mimetype, text=text))
            if found:
                return ExtractionResult(items=found[1], method=found[0], extracted_text=text)
            return ExtractionResult(extracted_text=text)

        raise ValidationError("Unsupported file type. Please upload an image or PDF")

    async def _pdf_text(self, content: bytes) -> str:
        try:
            text = await asyncio.to_thread(extract_pdf_text, content)
        except PdfReadError as e:
            logger.warning(f"PDF parsing failed: {e}")
            raise ValidationError(
                "Failed to parse PDF file. Please ensure it contains text or try converting to an image format."
            )
        if len(text.strip()) < MIN_PDF_TEXT:
            raise ValidationError(
                "Could not extract readable text from PDF. The PDF might be image-based or encrypted."
            )
        return text

    async def _first_hit(
        self, extractors: Sequence[BaseMenuExtractor], source: MenuSource
    ) -> Optional[tuple[str, list[ExtractedItem]]]:
        for extractor in extractors:
            try:
                items = await asyncio.wait_for(extractor.try_extract_items(source), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{extractor.name} extraction timed out after {self.timeout}s")
                continue
            except Exception as e:
                logger.error(f"{extractor.name} extraction failed, trying next candidate: {type(e).__name__}: {e}")
                continue

            if items:
                logger.info(f"{extractor.name} extracted {len(items)} menu items")
                return extractor.name, items
            logger.debug(f"{extractor.name} found no items")
        return None
