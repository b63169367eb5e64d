"""Text extraction for uploaded files."""

import logging

import PyPDF2
from PyPDF2.errors import PdfReadError

from services.document_ingestion.TextChunker import TextSegment
from shared.models.errors import ValidationError

PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPE = "text/plain"
SUPPORTED_MIME_TYPES = (PDF_MIME_TYPE, TEXT_MIME_TYPE)


class DocumentLoader:
    """Turns a stored upload into text segments.

    PDFs produce one segment per page that has extractable text, plain text
    files a single segment with the whole file content.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.logging = logger

    def load(self, file_path: str, content_type: str) -> list[TextSegment]:
        """Extract the text segments of a file.

        Args:
            file_path (str): Path of the stored upload.
            content_type (str): MIME type declared by the uploader.

        Returns:
            list[TextSegment]: Segments in document order.

        Raises:
            ValidationError: If the type is unsupported or the PDF cannot be parsed.
        """
        if content_type == PDF_MIME_TYPE:
            return self._load_pdf(file_path)
        if content_type == TEXT_MIME_TYPE:
            return self._load_text(file_path)
        raise ValidationError("Unsupported file type. Please upload PDF or TXT files.")

    def _load_text(self, file_path: str) -> list[TextSegment]:
        # newline="" keeps \r\n and \r as uploaded
        with open(file_path, "r", encoding="utf-8", errors="replace", newline="") as f:
            text = f.read()
        return [TextSegment(text=text, metadata={})]

    def _load_pdf(self, file_path: str) -> list[TextSegment]:
        try:
            reader = PyPDF2.PdfReader(file_path)
            total_pages = len(reader.pages)
            segments: list[TextSegment] = []
            for page_number, page in enumerate(reader.pages, start=1):
                text = page.extract_text() or ""
                if not text.strip():
                    self.logging.debug("Skipping PDF page %d of %d: no extractable text.", page_number, total_pages)
                    continue
                segments.append(TextSegment(
                    text=text,
                    metadata={
                        "pageNumber": page_number,
                        "totalPages": total_pages,
                        "loc": {"pageNumber": page_number},
                    },
                ))
        except (PdfReadError, ValueError) as exc:
            raise ValidationError(f"Could not read PDF file: {exc}") from exc

        self.logging.info("Extracted text from %d of %d PDF page(s).", len(segments), total_pages)
        return segments
