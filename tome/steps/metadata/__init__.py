"""
Metadata resolution for comic-book PDFs.

Module Structure:
- fusion_step.py: per-document orchestrator (stage cascade, page rotation, confidence)
- rendering.py: page-to-PNG rendering for visual analysis
- vision_parser.py: interpretation of the vision model's free-text reply
- extractors/: one extractor per evidence source

Usage:
    from tome.steps.metadata.fusion_step import MetadataFusionEngine

    engine = MetadataFusionEngine(settings, inventory)
    outcome = await engine.process(document)
"""
