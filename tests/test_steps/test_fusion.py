"""Tests for the metadata fusion engine: stage cascade, page rotation and confidence."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from tome.errors import DocumentUnreadable
from tome.inventory import InventoryStore
from tome.model.document import Document
from tome.model.record import COLUMNS, UNKNOWN_AUTHOR, DocumentRecord, ExtractionResult
from tome.model.search import ValidationAnalysis
from tome.steps.metadata.extractors.filename_extractor import FilenameMetadataExtractor
from tome.steps.metadata.fusion_step import MetadataFusionEngine, OutcomeStatus

HEADER = ",".join(COLUMNS)


def _embedded(result=None, error=None):
    extractor = MagicMock()
    extractor.extract_metadata = AsyncMock(return_value=result, side_effect=error)
    return extractor


def _vision(*results, available=True):
    extractor = MagicMock()
    extractor.available = available
    extractor.analyze = AsyncMock(side_effect=list(results))
    return extractor


def _validator(confidence):
    validator = MagicMock()
    validator.validate = AsyncMock(return_value=ValidationAnalysis(confidence=confidence, source="fake"))
    return validator


def _document(name):
    return Document.from_path(Path("/library") / name)


class TestStageCascade:

    @pytest.mark.asyncio
    async def test_offline_fallback_to_filename(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        engine = MetadataFusionEngine(settings, store, embedded=_embedded())

        outcome = await engine.process(_document("scan_0001.pdf"))

        assert outcome.status == OutcomeStatus.PROCESSED
        record = store.get("scan_0001.pdf")
        assert record.title == "scan 0001"
        assert record.author == UNKNOWN_AUTHOR
        assert record.confidence is None
        assert record.page_analyzed is None
        assert record.analysis_timestamp

    @pytest.mark.asyncio
    async def test_embedded_fields_take_precedence(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        vision = _vision()
        engine = MetadataFusionEngine(
            settings,
            store,
            embedded=_embedded(ExtractionResult(source="embedded", title="Gaston")),
            vision=vision,
        )

        outcome = await engine.process(_document("Franquin - Gaston Lagaffe.pdf"))

        assert outcome.record.title == "Gaston"
        assert outcome.record.author == "Franquin"
        assert outcome.record.sources == ["embedded", "filename"]
        vision.analyze.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolved_by_embedded_skips_other_stages(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        filename = MagicMock(spec=FilenameMetadataExtractor)
        filename.extract_metadata = AsyncMock()
        engine = MetadataFusionEngine(
            settings,
            store,
            embedded=_embedded(ExtractionResult(source="embedded", title="Maus", author="Art Spiegelman")),
            filename=filename,
        )

        await engine.process(_document("maus.pdf"))

        filename.extract_metadata.assert_not_called()

    @pytest.mark.asyncio
    async def test_vision_overwrites_heuristic_fields(self, vision_settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        vision = _vision(ExtractionResult(
            source="vision", title="Blacksad - Quelque part entre les ombres", author="Juan Diaz Canales",
            series="Blacksad", volume="1", confidence=88,
        ))
        engine = MetadataFusionEngine(vision_settings, store, embedded=_embedded(), vision=vision)

        outcome = await engine.process(_document("scan_0001.pdf"))

        record = outcome.record
        assert record.title == "Blacksad - Quelque part entre les ombres"
        assert record.author == "Juan Diaz Canales"
        assert record.series == "Blacksad"
        assert record.confidence == 88
        assert record.page_analyzed == 2
        vision.analyze.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreadable_document(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        engine = MetadataFusionEngine(
            settings, store, embedded=_embedded(error=DocumentUnreadable("/library/broken.pdf", "bad xref"))
        )

        outcome = await engine.process(_document("broken.pdf"))

        assert outcome.status == OutcomeStatus.ERROR
        assert "bad xref" in outcome.reason
        assert "broken.pdf" not in store


class TestPageRotation:

    @pytest.mark.asyncio
    async def test_pages_2_1_3_then_skip(self, vision_settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        title_only = ExtractionResult(source="vision", title="Blacksad", confidence=40)
        vision = _vision(title_only, title_only, title_only)
        engine = MetadataFusionEngine(vision_settings, store, embedded=_embedded(), vision=vision)
        document = _document("scan_0001.pdf")

        pages = []
        for _ in range(3):
            outcome = await engine.process(document)
            assert outcome.status == OutcomeStatus.PROCESSED
            pages.append(store.get("scan_0001.pdf").page_analyzed)

        outcome = await engine.process(document)

        assert pages == [2, 1, 3]
        assert outcome.status == OutcomeStatus.SKIPPED
        assert vision.analyze.await_count == 3
        assert [c.args[1] for c in vision.analyze.await_args_list] == [2, 1, 3]

    @pytest.mark.asyncio
    async def test_failed_attempt_still_advances(self, vision_settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        store.upsert(DocumentRecord(filename="scan.pdf", title="scan", author=UNKNOWN_AUTHOR, page_analyzed=2))
        engine = MetadataFusionEngine(vision_settings, store, embedded=_embedded(), vision=_vision(None))

        outcome = await engine.process(_document("scan.pdf"))

        assert outcome.record.page_analyzed == 1
        assert outcome.record.title == "scan"
        assert outcome.record.author == UNKNOWN_AUTHOR

    @pytest.mark.asyncio
    async def test_no_vision_key_leaves_page_unset(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        vision = _vision(available=False)
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), vision=vision)

        outcome = await engine.process(_document("scan_0001.pdf"))

        assert outcome.record.page_analyzed is None
        vision.analyze.assert_not_called()


class TestConfidence:

    @pytest.mark.asyncio
    async def test_lower_vision_confidence_is_ignored(self, vision_settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        store.upsert(DocumentRecord(filename="tintin.pdf", title="Tintin", author=UNKNOWN_AUTHOR, confidence=90))
        vision = _vision(ExtractionResult(source="vision", author="Hergé", confidence=60))
        engine = MetadataFusionEngine(vision_settings, store, embedded=_embedded(), vision=vision)

        outcome = await engine.process(_document("tintin.pdf"))

        assert outcome.record.author == "Hergé"
        assert outcome.record.confidence == 90

    @pytest.mark.asyncio
    async def test_validation_raises_confidence(self, settings, temp_dir):
        settings = settings.model_copy(update={"enable_web_validation": True})
        store = InventoryStore(temp_dir / "inventory.csv")
        store.upsert(DocumentRecord(filename="maus.pdf", title="Maus", author="Art Spiegelman", confidence=50))
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), validator=_validator(80))

        outcome = await engine.process(_document("maus.pdf"))

        assert outcome.record.confidence == 80
        assert store.get("maus.pdf").confidence == 80
        assert outcome.validation.confidence == 80

    @pytest.mark.asyncio
    async def test_validation_at_threshold_changes_nothing(self, settings, temp_dir):
        settings = settings.model_copy(update={"enable_web_validation": True})
        store = InventoryStore(temp_dir / "inventory.csv")
        store.upsert(DocumentRecord(filename="maus.pdf", title="Maus", author="Art Spiegelman", confidence=50))
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), validator=_validator(60))

        outcome = await engine.process(_document("maus.pdf"))

        assert outcome.record.confidence == 50

    @pytest.mark.asyncio
    async def test_validation_never_lowers_confidence(self, settings, temp_dir):
        settings = settings.model_copy(update={"enable_web_validation": True})
        store = InventoryStore(temp_dir / "inventory.csv")
        store.upsert(DocumentRecord(filename="maus.pdf", title="Maus", author="Art Spiegelman", confidence=95))
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), validator=_validator(80))

        outcome = await engine.process(_document("maus.pdf"))

        assert outcome.record.confidence == 95

    @pytest.mark.asyncio
    async def test_disabled_validation_is_not_called(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        validator = _validator(80)
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), validator=validator)

        await engine.process(_document("Franquin - Gaston.pdf"))

        validator.validate.assert_not_called()


class TestRerun:

    @pytest.mark.asyncio
    async def test_resolved_rows_are_byte_identical(self, settings, temp_dir):
        path = temp_dir / "inventory.csv"
        original = (
            HEADER + "\n"
            "asterix.pdf,Astérix le Gaulois,René Goscinny,Astérix,1,,85.0,2,2024-01-15T10:00:00+00:00\n"
        )
        path.write_text(original, encoding="utf-8")
        store = InventoryStore(path)
        store.load()
        embedded = _embedded()
        vision = _vision()
        engine = MetadataFusionEngine(settings, store, embedded=embedded, vision=vision)

        outcome = await engine.process(_document("asterix.pdf"))
        store.save()

        assert outcome.status == OutcomeStatus.PROCESSED
        assert path.read_text(encoding="utf-8") == original
        embedded.extract_metadata.assert_not_called()
        vision.analyze.assert_not_called()

    @pytest.mark.asyncio
    async def test_scored_record_keeps_empty_title(self, settings, temp_dir):
        store = InventoryStore(temp_dir / "inventory.csv")
        store.upsert(DocumentRecord(filename="Herge - Tintin.pdf", author="Hergé", confidence=70, analysis_timestamp="t"))
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), vision=_vision(available=False))

        outcome = await engine.process(_document("Herge - Tintin.pdf"))

        assert outcome.record.title == ""
        assert outcome.record.analysis_timestamp == "t"

    @pytest.mark.asyncio
    async def test_unchanged_incomplete_record_keeps_timestamp(self, settings, temp_dir):
        path = temp_dir / "inventory.csv"
        original = HEADER + "\nscan_0001.pdf,scan 0001,Unknown,,,,,,2024-01-15T10:00:00+00:00\n"
        path.write_text(original, encoding="utf-8")
        store = InventoryStore(path)
        store.load()
        engine = MetadataFusionEngine(settings, store, embedded=_embedded(), vision=_vision(available=False))

        await engine.process(_document("scan_0001.pdf"))
        store.save()

        assert path.read_text(encoding="utf-8") == original
