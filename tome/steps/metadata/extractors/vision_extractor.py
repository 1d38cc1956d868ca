"""
Cover analysis with a vision-capable model.

Workflow for one page:
1. Render the page to a temporary PNG (removed on every exit path)
2. Encode it as base64
3. Send it with the fixed extraction prompt to the Anthropic Messages API
4. Parse the loosely structured reply (see `vision_parser`)

Missing credentials or API errors make the analysis unavailable: the caller
gets None and the document keeps its pre-escalation fields.
"""

from typing import Optional

from tome.common.http_utils import make_anthropic_request
from tome.common.prompts import get_cover_extraction_prompt
from tome.config import Settings
from tome.errors import VisionUnavailable
from tome.model.document import Document
from tome.model.record import ExtractionResult
from tome.steps.metadata.extractors.base_extractor import BaseMetadataExtractor
from tome.steps.metadata.rendering import PageRenderer, rendered_page
from tome.steps.metadata.vision_parser import parse_vision_reply
from tome.utils import read_base64

DEFAULT_COVER_PAGE = 2


class VisionMetadataExtractor(BaseMetadataExtractor):

    source = "vision"

    def __init__(self, settings: Settings, renderer: Optional[PageRenderer] = None, debug: bool = False):
        super().__init__(debug)
        self.settings = settings
        self.renderer = renderer or PageRenderer(dpi=settings.render_dpi, max_size=settings.render_max_size)

    @property
    def available(self) -> bool:
        return self.settings.vision_enabled

    async def _ask_model(self, image_base64: str) -> str:
        reply = await make_anthropic_request(
            api_key=self.settings.anthropic_api_key,
            model=self.settings.vision_model,
            prompt=get_cover_extraction_prompt(),
            image_base64=image_base64,
            max_tokens=self.settings.vision_max_tokens,
        )
        if not reply:
            raise VisionUnavailable(f"{self.settings.vision_model} gave no answer")
        return reply

    async def analyze(self, document: Document, page_number: int) -> Optional[ExtractionResult]:
        """
        Analyze one page of the document.

        Returns:
            Parsed fields, or None when the page could not be rendered or the
            model could not be reached
        """
        if not self.available:
            self.logger.debug("No vision API key configured, skipping visual analysis")
            return None

        self.logger.info(f"Analyzing page {page_number} of {document.filename} with {self.settings.vision_model}")

        with rendered_page(self.renderer, document.file_path, page_number) as image_path:
            if image_path is None:
                return None

            image_base64 = await read_base64(image_path)
            if not image_base64:
                self.logger.warning(f"Rendered image for {document.filename} is empty")
                return None

            try:
                reply = await self._ask_model(image_base64)
            except VisionUnavailable as e:
                self.logger.warning(f"Visual analysis unavailable for {document.filename}: {str(e)}")
                return None

        result = parse_vision_reply(reply)
        if result.is_empty():
            self.logger.warning(f"Vision model could not identify {document.filename} (page {page_number})")
            return None

        self.logger.info(
            f"Vision identified: {result.title or '?'} by {result.author or '?'} "
            f"(confidence: {result.confidence}%)"
        )
        return self._finalize_metadata(result, document)

    async def extract_metadata(self, document: Document) -> Optional[ExtractionResult]:
        return await self.analyze(document, DEFAULT_COVER_PAGE)
