import argparse
import asyncio
import sys
import time
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from tqdm import tqdm

from tome.config import Settings, load_settings
from tome.errors import SourceDirectoryMissing
from tome.inventory import InventoryStore
from tome.logging import add_log_file, get_logger, set_log_level
from tome.model.document import Document
from tome.model.record import is_unknown_author
from tome.steps.metadata.fusion_step import DocumentOutcome, MetadataFusionEngine, OutcomeStatus
from tome.steps.validation.validation_step import WebCrossValidator

SAMPLE_BOOKS: List[Tuple[str, str, str]] = [
    ("Astérix", "René Goscinny", "978-2-86497-133-4"),
    ("Tintin", "Hergé", ""),
    ("Persepolis", "Marjane Satrapi", "978-2-203-00105-3"),
    ("Maus", "Art Spiegelman", ""),
]


@dataclass
class RunSummary:
    scanned: int = 0
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    authors: Set[str] = field(default_factory=set)
    inventory_saved: bool = False
    elapsed: float = 0.0

    def record(self, outcome: DocumentOutcome) -> None:
        if outcome.status == OutcomeStatus.PROCESSED:
            self.processed += 1
            author = outcome.record.author if outcome.record else ""
            if not is_unknown_author(author):
                self.authors.add(author)
        elif outcome.status == OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def log(self, logger) -> None:
        logger.info(f"Documents found: {self.scanned}")
        logger.info(f"Processed: {self.processed}, skipped: {self.skipped}, errors: {self.errors}")
        logger.info(f"Distinct authors: {len(self.authors)}")
        for author in sorted(self.authors):
            logger.info(f"  - {author}")
        logger.info(f"Run completed in {self.elapsed:.2f} seconds")


async def run_pipeline(settings: Settings) -> RunSummary:
    """Analyze every document under the source directory, one at a time.

    Args:
        settings: Run settings. `source_dir` must point to an existing directory.

    Returns:
        The run summary.

    Raises:
        SourceDirectoryMissing: if the source directory does not exist.
    """
    logger = get_logger("pipeline")
    start_time = time.perf_counter()

    if settings.source_dir is None or not settings.source_dir.is_dir():
        raise SourceDirectoryMissing(f"Source directory not found: {settings.source_dir}")

    if not settings.vision_enabled:
        logger.warning("No vision API key configured: visual analysis disabled")
    if not settings.enable_web_validation:
        logger.info("Web validation disabled")

    store = InventoryStore(settings.inventory_path)
    store.load()

    engine = MetadataFusionEngine(settings, store)

    input_files = settings.list_documents()
    summary = RunSummary(scanned=len(input_files))
    logger.info(f"{len(input_files)} PDF files found in {settings.source_dir}")

    with tqdm(total=len(input_files), desc="Analyzing documents", unit="doc") as pbar:
        for file_path in input_files:
            document = Document.from_path(file_path)
            try:
                outcome = await engine.process(document)
            except Exception as e:
                logger.error(f"Unexpected failure on {document.filename}: {str(e)}")
                outcome = DocumentOutcome(document.filename, OutcomeStatus.ERROR, reason=str(e))
            summary.record(outcome)
            pbar.update(1)

    summary.inventory_saved = store.save()
    summary.elapsed = time.perf_counter() - start_time
    summary.log(logger)
    return summary


async def check_validation(settings: Settings, books: List[Tuple[str, str, str]]) -> int:
    """Run web validation on known books without touching any document."""
    logger = get_logger("check")
    validator = WebCrossValidator(settings)
    validated = 0

    for title, author, isbn in books:
        logger.info(f"Checking: {title} / {author} / {isbn or 'no ISBN'}")
        analysis = await validator.validate(title, author, isbn)
        if analysis is None:
            logger.warning(f"Validation unavailable for {title}")
            continue
        validated += 1

    logger.info(f"{validated}/{len(books)} books validated")
    return validated


def main(settings: Optional[Settings] = None) -> int:
    """entry point for the pipeline"""
    settings = settings or load_settings()
    set_log_level(settings.log_level)
    logger = get_logger("pipeline")
    log_sink = add_log_file(settings.log_file, level=settings.log_level) if settings.log_file else None
    try:
        asyncio.run(run_pipeline(settings))
    except SourceDirectoryMissing as e:
        logger.error(str(e))
        return 1
    finally:
        if log_sink is not None:
            logger.remove(log_sink)
    return 0


def cli():
    parser = argparse.ArgumentParser(prog="tome")
    parser.add_argument("--config", help="YAML settings file", default=None)
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Analyze the documents and update the inventory")
    offline_parser = subparsers.add_parser("run-offline", help="Same as run, without web validation")
    for sub in (run_parser, offline_parser):
        sub.add_argument("--source-dir", help="Directory scanned for PDF files")
        sub.add_argument("--inventory", help="Inventory CSV path")
        sub.add_argument("--log-file", help="Also write the log to this file")

    check_parser = subparsers.add_parser("check", help="Validate known books on the web")
    check_parser.add_argument("--title", default="")
    check_parser.add_argument("--author", default="")
    check_parser.add_argument("--isbn", default="")

    args = parser.parse_args()

    overrides = {}
    if args.command in ("run", "run-offline"):
        if args.source_dir:
            overrides["source_dir"] = args.source_dir
        if args.inventory:
            overrides["inventory_path"] = args.inventory
        if args.log_file:
            overrides["log_file"] = args.log_file
    if args.command == "run-offline":
        overrides["enable_web_validation"] = False

    if args.command in ("run", "run-offline"):
        sys.exit(main(load_settings(args.config, **overrides)))
    elif args.command == "check":
        settings = load_settings(args.config)
        set_log_level(settings.log_level)
        books = [(args.title, args.author, args.isbn)] if (args.title or args.author or args.isbn) else SAMPLE_BOOKS
        asyncio.run(check_validation(settings, books))
    else:
        parser.print_help()
