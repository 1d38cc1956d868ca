"""
Embedded PDF metadata extractor using pdfplumber and PyPDF2.

Reads the document information dictionary (Title, Author, Subject, Creator,
Producer) that PDF writers embed in the file:

1. **Primary reader - pdfplumber**: more tolerant of damaged cross-reference tables
2. **Fallback reader - PyPDF2**: used when pdfplumber cannot open the file

If neither reader can parse the file, the document is unreadable and the caller
aborts analysis of that document only. Scanned comics very often carry no
useful values here (or the scanner software name as title); empty fields are
normal and are filled by the later stages.
"""

from typing import Dict, Optional

from tome.errors import DocumentUnreadable
from tome.model.document import Document
from tome.model.record import ExtractionResult
from tome.steps.metadata.extractors.base_extractor import BaseMetadataExtractor

EMBEDDED_FIELDS = ("title", "author", "subject", "creator", "producer")


class PdfMetadataExtractor(BaseMetadataExtractor):
    """
    Metadata extractor for the information block embedded in PDF files.

    Extracted fields:
    - title, author: used by the fusion engine
    - subject, creator, producer: kept on the document handle for debugging
    """

    source = "embedded"

    def _as_text(self, value) -> str:
        if isinstance(value, bytes):
            for encoding in ("utf-8", "utf-16", "latin-1"):
                try:
                    value = value.decode(encoding)
                    break
                except UnicodeDecodeError:
                    continue
        if value is None:
            return ""
        return self._clean_text(str(value)) or ""

    def _read_with_pdfplumber(self, file_path: str) -> Dict[str, str]:
        import pdfplumber

        with pdfplumber.open(file_path) as pdf:
            info = pdf.metadata or {}
        return {key: self._as_text(info.get(key.capitalize())) for key in EMBEDDED_FIELDS}

    def _read_with_pypdf2(self, file_path: str) -> Dict[str, str]:
        import PyPDF2

        with open(file_path, 'rb') as file:
            reader = PyPDF2.PdfReader(file)
            info = reader.metadata or {}
            return {key: self._as_text(info.get(f"/{key.capitalize()}")) for key in EMBEDDED_FIELDS}

    def read_embedded_metadata(self, document: Document) -> Dict[str, str]:
        """
        Read the raw information block.

        Returns:
            Mapping with keys title, author, subject, creator, producer; each may be empty

        Raises:
            DocumentUnreadable: if neither pdfplumber nor PyPDF2 can parse the file
        """
        file_path = str(document.file_path)

        try:
            return self._read_with_pdfplumber(file_path)
        except Exception as e:
            self.logger.debug(f"pdfplumber failed for {file_path}: {str(e)}, trying PyPDF2 fallback")

        try:
            return self._read_with_pypdf2(file_path)
        except Exception as e:
            self.logger.error(f"Both pdfplumber and PyPDF2 failed for {file_path}: {str(e)}")
            raise DocumentUnreadable(document.file_path, str(e)) from e

    async def extract_metadata(self, document: Document) -> Optional[ExtractionResult]:
        """
        Extract title and author from the embedded information block.

        Returns:
            ExtractionResult tagged "embedded", or None when both fields are empty

        Raises:
            DocumentUnreadable: propagated from `read_embedded_metadata`
        """
        if not self._validate_document_format(document, "pdf"):
            return None

        info = self.read_embedded_metadata(document)
        document.add_metadata("embedded", info)

        result = ExtractionResult(
            source=self.source,
            title=info.get("title", ""),
            author=info.get("author", ""),
        )
        return self._finalize_metadata(result, document)
