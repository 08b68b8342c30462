"""
Document viewer collaborator: page bookkeeping for an open PDF and the
attach/detach slot the dispatcher talks through.
"""
import logging
from pathlib import Path
from typing import Dict, Optional

import fitz  # PyMuPDF

from .types import ViewerProto

logger = logging.getLogger(__name__)


class PdfDocumentViewer:
    """Tracks the current page of an open document, bounded to 1..page_count."""

    def __init__(self, source: str, page_count: int, title: str = ""):
        self.source = source
        self.title = title or Path(source).stem
        self.page_count = page_count
        self.current_page = 1 if page_count > 0 else 0

    def go_to_page(self, page: int) -> None:
        if 1 <= page <= self.page_count:
            self.current_page = page
            logger.info(f"📄 Page {page} of {self.page_count}")
        else:
            logger.info(f"⚠️ Page {page} out of range (1..{self.page_count})")

    def next_page(self) -> None:
        if self.current_page < self.page_count:
            self.go_to_page(self.current_page + 1)

    def prev_page(self) -> None:
        if self.current_page > 1:
            self.go_to_page(self.current_page - 1)


class NotAPdfError(ValueError):
    """Raised when uploaded data is not a PDF document."""


UPLOAD_PREFIX = "upload:"
PDF_CONTENT_TYPE = "application/pdf"


class PdfDocumentHost:
    """
    Opens PDF files with PyMuPDF and keeps the one currently shown.

    Uploaded documents are held in memory under an "upload:<name>" source
    until the document showing them is closed or replaced.
    """

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir) if base_dir else None
        self.viewer: Optional[PdfDocumentViewer] = None
        self._doc: Optional[fitz.Document] = None
        self._uploads: Dict[str, bytes] = {}

    def _resolve(self, source: str) -> Path:
        path = Path(source)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path

    def add_upload(self, filename: str, data: bytes, content_type: Optional[str] = PDF_CONTENT_TYPE) -> str:
        """
        Register uploaded PDF bytes for opening.

        Args:
            filename: Name of the uploaded file, used as title
            data: File contents
            content_type: MIME type reported by the uploader

        Returns:
            Source string to pass to open()

        Raises:
            NotAPdfError: if the content type or the data is not a PDF
        """
        if content_type is not None and content_type.split(";")[0].strip() != PDF_CONTENT_TYPE:
            raise NotAPdfError(f"{filename} is not a PDF file ({content_type})")
        if not data.startswith(b"%PDF"):
            raise NotAPdfError(f"{filename} is not a PDF file")

        source = f"{UPLOAD_PREFIX}{Path(filename).name}"
        self._uploads[source] = data
        logger.info(f"📄 Received uploaded PDF: {filename} ({len(data)} bytes)")
        return source

    def open(self, source: str) -> PdfDocumentViewer:
        """
        Open a document, closing any previous one.

        Raises:
            FileNotFoundError: if the file does not exist
            RuntimeError: if PyMuPDF cannot parse it
        """
        data = self._uploads.get(source)
        path = None
        if data is None:
            path = self._resolve(source)
            if not path.exists():
                raise FileNotFoundError(f"Document not found: {path}")

        try:
            if data is not None:
                doc = fitz.open(stream=data, filetype="pdf")
            else:
                doc = fitz.open(str(path))
        except (fitz.FileDataError, RuntimeError) as e:
            raise RuntimeError(f"Failed to load PDF {source}: {e}") from e

        # the previous document stays shown if parsing fails
        self.close()
        self._doc = doc
        if data is not None:
            # close() above released it if it was already shown
            self._uploads[source] = data
            name = source[len(UPLOAD_PREFIX):]
            shown = source
        else:
            name = path.name
            shown = str(path)
        title = (doc.metadata or {}).get("title") or Path(name).stem
        self.viewer = PdfDocumentViewer(shown, doc.page_count, title)
        logger.info(f"🖼️ Loaded {name} ({doc.page_count} pages)")
        return self.viewer

    def discard_upload(self, source: str) -> None:
        """Forget an upload that is not shown."""
        if self.viewer is None or self.viewer.source != source:
            self._uploads.pop(source, None)

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
            logger.info("❌ Document closed")
        if self.viewer is not None:
            self._uploads.pop(self.viewer.source, None)
        self._doc = None
        self.viewer = None


class ViewerSlot:
    """Non-owning reference to the viewer of the loaded document, if any."""

    def __init__(self):
        self._viewer: Optional[ViewerProto] = None

    @property
    def viewer(self) -> Optional[ViewerProto]:
        return self._viewer

    @property
    def is_attached(self) -> bool:
        return self._viewer is not None

    def attach(self, viewer: ViewerProto) -> None:
        self._viewer = viewer

    def detach(self) -> None:
        self._viewer = None
