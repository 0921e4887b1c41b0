"""
Document text service: plain text out of uploaded documents.

PDFs go through pdfplumber (native text only, scanned PDFs are rejected).
Text uploads are decoded as UTF-8, falling back to Latin-1.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional
import pdfplumber
import structlog

from config.settings import settings
from exceptions import ExtractionError

logger = structlog.get_logger(__name__)


PDF_EXTENSIONS = {".pdf"}
TEXT_EXTENSIONS = {".txt", ".text", ".csv", ".tsv"}
PDF_MAGIC = b"%PDF"


class DocumentTextService:
    """Convert an uploaded document to plain text."""

    def _extract_with_pdfplumber(self, pdf_bytes: bytes) -> str:
        """
        Extract text using pdfplumber.

        Args:
            pdf_bytes: PDF file content as bytes

        Returns:
            Page texts joined by newlines
        """
        pages = []
        with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages.append(page_text)
        return "\n".join(pages)

    def _decode_text(self, content: bytes) -> str:
        """UTF-8 (BOM tolerant) first, Latin-1 otherwise."""
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            logger.debug("utf8_decode_failed_using_latin1")
            return content.decode("latin-1")

    def is_pdf(self, content: bytes, filename: Optional[str] = None) -> bool:
        """Check extension first, then the file signature."""
        if filename and Path(filename).suffix.lower() in PDF_EXTENSIONS:
            return True
        return content.startswith(PDF_MAGIC)

    def extract_text(self, content: bytes, filename: Optional[str] = None) -> str:
        """
        Extract plain text from a document.

        Args:
            content: Raw file bytes
            filename: Original file name (used to pick the reader)

        Returns:
            Extracted text

        Raises:
            ExtractionError: Empty, oversized, unsupported, corrupt or
                image-only documents
        """
        if not content:
            raise ExtractionError("Document is empty", details={"filename": filename})

        if len(content) > settings.max_document_bytes:
            raise ExtractionError(
                "Document is too large",
                details={
                    "filename": filename,
                    "size_bytes": len(content),
                    "max_bytes": settings.max_document_bytes
                }
            )

        if self.is_pdf(content, filename):
            try:
                text = self._extract_with_pdfplumber(content)
            except Exception as e:
                logger.error("pdf_extraction_failed", filename=filename, error=str(e))
                raise ExtractionError(
                    f"Failed to extract text from PDF: {str(e)}",
                    details={"filename": filename, "original_error": str(e)}
                )

            if not text.strip():
                raise ExtractionError(
                    "No text could be extracted from PDF (scanned images are not supported)",
                    details={"filename": filename, "pdf_size_bytes": len(content)}
                )

        else:
            suffix = Path(filename).suffix.lower() if filename else ""
            if suffix and suffix not in TEXT_EXTENSIONS:
                raise ExtractionError(
                    f"Unsupported document type: {suffix}",
                    details={
                        "filename": filename,
                        "supported": sorted(PDF_EXTENSIONS | TEXT_EXTENSIONS)
                    }
                )

            text = self._decode_text(content)
            if not text.strip():
                raise ExtractionError("Document contains no text", details={"filename": filename})

        logger.info(
            "document_text_extracted",
            filename=filename,
            text_length=len(text),
            preview=text[:200].replace("\n", " ")
        )
        return text


# Singleton instance
_document_text_service: Optional[DocumentTextService] = None


def get_document_text_service() -> DocumentTextService:
    """Get or create DocumentTextService instance."""
    global _document_text_service
    if _document_text_service is None:
        _document_text_service = DocumentTextService()
    return _document_text_service
