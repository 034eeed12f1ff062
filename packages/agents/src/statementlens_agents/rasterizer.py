"""Document rasterization.

Turns a stored upload into the ordered list of page images the vision model
reads. PDFs are rendered page by page with pdfplumber; single images are
normalised with Pillow. Word documents are accepted at upload time but
cannot be rendered yet, so they fail the job with a clear message.
"""

import asyncio
import io
from pathlib import Path
from typing import Optional, Union

import pdfplumber
import structlog
from PIL import Image, UnidentifiedImageError

from statementlens_core.exceptions import UnsupportedMediaType, UpstreamFailure

from statementlens_agents.config import PipelineConfig

logger = structlog.get_logger()

PDF_MIME_TYPES = frozenset({"application/pdf"})
IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png"})
WORD_MIME_TYPES = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)


def _fit(image: Image.Image, max_dimension: int) -> Image.Image:
    """Downscale so the longest side is at most ``max_dimension``."""
    if max(image.size) > max_dimension:
        image = image.copy()
        image.thumbnail((max_dimension, max_dimension))
    return image


def _encode(image: Image.Image, image_format: str) -> bytes:
    if image_format == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue()


class PdfRasterizer:
    """
    Render PDFs and images into page images.

    Satisfies ``RasterizerProtocol``. The blocking rendering work runs in a
    worker thread so concurrent jobs keep the event loop responsive.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    async def rasterize(self, file_path: str, mime_type: str) -> list[bytes]:
        """
        Produce one encoded image per page, in page order.

        Raises:
            UnsupportedMediaType: Word documents and unknown media types.
            UpstreamFailure: The file is missing, corrupt or has no pages.
        """
        kind = mime_type.strip().lower()
        if kind in WORD_MIME_TYPES:
            raise UnsupportedMediaType(
                "Word document processing not yet implemented. "
                "Please convert to PDF first.",
                mime_type=mime_type,
            )
        if kind in PDF_MIME_TYPES:
            render = self._render_pdf
        elif kind in IMAGE_MIME_TYPES:
            render = self._render_image
        else:
            raise UnsupportedMediaType(
                f"Cannot rasterize documents of type {mime_type}",
                mime_type=mime_type,
            )

        path = Path(file_path)
        if not path.exists():
            raise UpstreamFailure(
                f"Uploaded file not found: {file_path}",
                service="rasterizer",
                operation="rasterize",
                recoverable=False,
            )

        pages = await asyncio.to_thread(render, path)
        if not pages:
            raise UpstreamFailure(
                f"No pages could be rendered from {path.name}",
                service="rasterizer",
                operation="rasterize",
                recoverable=False,
            )
        logger.debug("rasterized", file_path=str(path), pages=len(pages))
        return pages

    def _render_pdf(self, path: Union[str, Path]) -> list[bytes]:
        pages: list[bytes] = []
        try:
            with pdfplumber.open(path) as pdf:
                for page in pdf.pages[: self.config.max_pages]:
                    rendered = page.to_image(resolution=self.config.render_resolution)
                    image = _fit(rendered.original, self.config.max_image_dimension)
                    pages.append(_encode(image, "PNG"))
        except Exception as e:
            logger.warning("pdf_render_failed", file_path=str(path), error=str(e))
            raise UpstreamFailure(
                f"Failed to render PDF: {e}",
                service="rasterizer",
                operation="render_pdf",
                upstream_error=str(e),
                recoverable=False,
            ) from e
        return pages

    def _render_image(self, path: Union[str, Path]) -> list[bytes]:
        try:
            with Image.open(path) as image:
                image.load()
                fitted = _fit(image, self.config.max_image_dimension)
                return [_encode(fitted, "JPEG")]
        except (UnidentifiedImageError, OSError) as e:
            logger.warning("image_load_failed", file_path=str(path), error=str(e))
            raise UpstreamFailure(
                f"Failed to read image: {e}",
                service="rasterizer",
                operation="render_image",
                upstream_error=str(e),
                recoverable=False,
            ) from e
