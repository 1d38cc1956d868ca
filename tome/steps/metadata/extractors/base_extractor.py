from abc import ABC, abstractmethod
from typing import Optional

from tome.model.document import Document
from tome.model.record import ExtractionResult
from tome.logging import get_logger


class BaseMetadataExtractor(ABC):
    """
    Abstract base class for all metadata extractors.
    """

    source = "base"

    def __init__(self, debug: bool = False):
        """
        Initialize the base metadata extractor.

        Args:
            debug: Enable debug logging for detailed extraction information
        """
        self.debug = debug
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    async def extract_metadata(self, document: Document) -> Optional[ExtractionResult]:
        """
        Extract candidate fields from a document.

        Args:
            document: Document to extract metadata from

        Returns:
            ExtractionResult with the fields found, or None if nothing was found
        """
        pass

    def _validate_document_format(self, document: Document, expected_format: str) -> bool:
        """
        Validate that the document has the expected format.

        Args:
            document: Document to validate
            expected_format: Expected file format (e.g., "pdf")

        Returns:
            True if format matches, False otherwise
        """
        if document.file_format != expected_format:
            self.logger.warning(f"Expected {expected_format} format, got {document.file_format}")
            return False
        return True

    def _finalize_metadata(self, result: ExtractionResult, document: Document) -> Optional[ExtractionResult]:
        """
        Finalize a result by adding debug logging and dropping empty results.

        Returns:
            The result, or None if it carries no field
        """
        if result.is_empty():
            return None

        if self.debug:
            self.logger.debug(f"Extracted ({result.source}) for {document.filename}: {result.identified_fields()}")

        return result

    def _clean_text(self, text) -> Optional[str]:
        """
        Clean and normalize a metadata string.

        Args:
            text: Raw string from extracted metadata

        Returns:
            Cleaned string, or None if the value is unusable
        """
        if not text or not isinstance(text, str):
            return None

        # Convert newlines and carriage returns to spaces
        cleaned = text.replace('\n', ' ').replace('\r', ' ').replace('\x00', '')

        # Collapse multiple spaces into single spaces
        while '  ' in cleaned:
            cleaned = cleaned.replace('  ', ' ')

        cleaned = cleaned.strip()
        return cleaned or None
