"""Rendering of a single document page to a temporary PNG file."""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from tome.errors import RenderFailure
from tome.logging import get_logger

logger = get_logger(__name__)


class PageRenderer:
    """
    Renders one page of a PDF with pypdfium2.

    Pages are numbered from 1. The image is downscaled so that neither side
    exceeds `max_size` pixels, which keeps the base64 payload of the vision
    request within API limits.
    """

    def __init__(self, dpi: int = 300, max_size: int = 2048):
        self.dpi = dpi
        self.max_size = max_size

    def render(self, pdf_path: Path, page_number: int, output_path: Path) -> Path:
        """
        Render `page_number` of `pdf_path` into `output_path` as PNG.

        Raises:
            RenderFailure: page out of range or the PDF cannot be rasterized
        """
        import pypdfium2

        try:
            pdf = pypdfium2.PdfDocument(str(pdf_path))
        except Exception as e:
            raise RenderFailure(f"Cannot open {pdf_path}: {str(e)}") from e

        try:
            if page_number < 1 or page_number > len(pdf):
                raise RenderFailure(f"{pdf_path} has {len(pdf)} pages, page {page_number} requested")
            page = pdf[page_number - 1]
            try:
                bitmap = page.render(scale=self.dpi / 72)
                image = bitmap.to_pil()
            finally:
                page.close()
            image.thumbnail((self.max_size, self.max_size))
            image.save(output_path, format="PNG")
        except RenderFailure:
            raise
        except Exception as e:
            raise RenderFailure(f"Cannot render page {page_number} of {pdf_path}: {str(e)}") from e
        finally:
            pdf.close()

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise RenderFailure(f"Rendering page {page_number} of {pdf_path} produced no image")
        return output_path


@contextmanager
def rendered_page(renderer: PageRenderer, pdf_path: Path, page_number: int) -> Iterator[Optional[Path]]:
    """
    Render a page to a temporary file for the duration of the block.

    Yields the image path, or None when rendering failed. The file is removed
    on every exit path; a failed removal is logged and never raised.
    """
    fd, name = tempfile.mkstemp(prefix="tome_page_", suffix=".png")
    os.close(fd)
    image_path = Path(name)

    try:
        try:
            rendered = renderer.render(pdf_path, page_number, image_path)
        except RenderFailure as e:
            logger.warning(f"Render failure: {str(e)}")
            rendered = None
        yield rendered
    finally:
        try:
            image_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary image {image_path}: {str(e)}")
