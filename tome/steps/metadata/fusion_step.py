"""
Metadata fusion: drives the extraction cascade for one document at a time.

Per document:
1. Load the prior record from the inventory. A resolved record goes straight to
   validation; a record whose page rotation is exhausted is skipped.
2. Apply the ordered stages (embedded -> filename -> vision) to a draft record
   until it is resolved. Embedded and filename values only fill empty fields;
   non-empty vision values overwrite.
3. Cross-validate on the web. A validation confidence above the threshold
   raises the stored confidence, which never decreases.
4. Write the draft back to the inventory.

Page rotation (last analyzed page is stored in `page_analyzed`):
    not tried -> page 2 -> page 1 -> page 3 -> exhausted
Exhausted documents are skipped until the stored marker is cleared by hand.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from tome.base_step import PipelineStep
from tome.config import Settings
from tome.errors import DocumentUnreadable
from tome.inventory import InventoryStore
from tome.model.document import Document
from tome.model.record import DocumentRecord
from tome.model.search import ValidationAnalysis
from tome.steps.metadata.extractors.filename_extractor import FilenameMetadataExtractor
from tome.steps.metadata.extractors.pdf_extractor import PdfMetadataExtractor
from tome.steps.metadata.extractors.vision_extractor import VisionMetadataExtractor
from tome.steps.validation.validation_step import WebCrossValidator


class OutcomeStatus(str, Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class DocumentOutcome:
    filename: str
    status: OutcomeStatus
    record: Optional[DocumentRecord] = None
    validation: Optional[ValidationAnalysis] = None
    reason: str = ""


@dataclass
class _StageContext:
    document: Document
    prior: Optional[DocumentRecord]


Stage = Callable[[DocumentRecord, _StageContext], Awaitable[None]]


class MetadataFusionEngine(PipelineStep):

    def __init__(
        self,
        settings: Settings,
        inventory: InventoryStore,
        embedded: Optional[PdfMetadataExtractor] = None,
        filename: Optional[FilenameMetadataExtractor] = None,
        vision: Optional[VisionMetadataExtractor] = None,
        validator: Optional[WebCrossValidator] = None,
    ):
        super().__init__(settings)
        self.inventory = inventory
        self.embedded = embedded or PdfMetadataExtractor(debug=self.debug)
        self.filename = filename or FilenameMetadataExtractor(debug=self.debug)
        self.vision = vision or VisionMetadataExtractor(settings, debug=self.debug)
        if validator is None and settings.enable_web_validation:
            validator = WebCrossValidator(settings)
        self.validator = validator

        self.stages: List[Tuple[str, Stage]] = [
            ("embedded", self._embedded_stage),
            ("filename", self._filename_stage),
            ("vision", self._vision_stage),
        ]

    async def _embedded_stage(self, draft: DocumentRecord, context: _StageContext) -> None:
        result = await self.embedded.extract_metadata(context.document)
        if result:
            draft.fill_missing(result)

    async def _filename_stage(self, draft: DocumentRecord, context: _StageContext) -> None:
        prior = context.prior
        if prior is not None and prior.confidence is not None and not (prior.title and prior.author):
            self.logger.debug(f"Keeping empty fields of {draft.filename}, already scored by a previous run")
            return
        result = await self.filename.extract_metadata(context.document)
        if result:
            draft.fill_missing(result, keys=("title", "author"))

    async def _vision_stage(self, draft: DocumentRecord, context: _StageContext) -> None:
        if not draft.needs_visual_analysis():
            return
        if not self.vision.available:
            self.logger.debug("Visual analysis unavailable, keeping heuristic fields")
            return

        page = draft.page_attempt.next_page()
        if page is None:
            return

        draft.page_analyzed = page
        result = await self.vision.analyze(context.document, page)
        if result is None:
            return

        draft.overwrite_with(result)
        draft.raise_confidence(result.confidence)

    async def _validate(self, record: DocumentRecord) -> Optional[ValidationAnalysis]:
        if self.validator is None or not self.settings.enable_web_validation:
            return None
        if not record.has_known_fields():
            return None

        analysis = await self.validator.validate(record.title, record.author, record.isbn)
        if analysis and analysis.confidence > self.settings.validation_confidence_threshold:
            if record.raise_confidence(analysis.confidence):
                self.logger.success(f"Web validation succeeded - confidence updated: {record.confidence}%")
        return analysis

    async def process(self, document: Document) -> DocumentOutcome:
        """Resolve one document and write the result to the inventory."""
        prior = self.inventory.get(document.filename)

        if prior is not None and prior.is_resolved():
            self.logger.info(f"Already analyzed: {prior.title} by {prior.author}")
            analysis = await self._validate(prior)
            self.inventory.upsert(prior)
            return DocumentOutcome(document.filename, OutcomeStatus.PROCESSED, prior, analysis)

        if prior is not None and prior.page_attempt.exhausted:
            self.logger.warning(f"Already tried 3 different pages for {document.filename}, skipping")
            return DocumentOutcome(document.filename, OutcomeStatus.SKIPPED, prior, reason="page rotation exhausted")

        draft = prior.copy() if prior is not None else DocumentRecord(filename=document.filename)
        context = _StageContext(document=document, prior=prior)

        try:
            for name, stage in self.stages:
                if draft.is_resolved():
                    break
                self.logger.debug(f"Running {name} stage for {document.filename}")
                await stage(draft, context)
        except DocumentUnreadable as e:
            self.logger.error(f"Aborting analysis of {document.filename}: {str(e)}")
            return DocumentOutcome(document.filename, OutcomeStatus.ERROR, reason=str(e))

        if prior is None or draft != prior:
            draft.touch()

        analysis = await self._validate(draft)
        self.inventory.upsert(draft)

        self.logger.info(
            f"Analyzed: {draft.title or 'unidentified title'} by {draft.author or 'unidentified author'}"
        )
        return DocumentOutcome(document.filename, OutcomeStatus.PROCESSED, draft, analysis)

    async def execute(self, document: Document) -> DocumentOutcome:
        return await self.process(document)
