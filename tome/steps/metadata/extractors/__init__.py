"""
Metadata Extractors Package.

Each extractor implements the BaseMetadataExtractor interface and returns an
ExtractionResult, or None when its source yields nothing.

Extractor Classes:
- BaseMetadataExtractor: Abstract base class with shared utilities
- PdfMetadataExtractor: embedded document-information block (pdfplumber, PyPDF2 fallback)
- FilenameMetadataExtractor: author/title heuristics on the file name
- VisionMetadataExtractor: rendered page sent to a vision-capable language model

Usage:
    from tome.steps.metadata.extractors.filename_extractor import FilenameMetadataExtractor

    extractor = FilenameMetadataExtractor()
    result = await extractor.extract_metadata(document)
"""
