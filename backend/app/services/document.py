"""
Quiz Platform - Document Service
Text extraction from uploaded documents. Nothing is written to disk.
"""
import asyncio
import io
import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from app.core.config import settings
from app.core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".pdf", ".txt"}


def _read_pdf(content: bytes) -> str:
    reader = PdfReader(io.BytesIO(content))
    text_parts = []
    for page in reader.pages:
        text = page.extract_text()
        if text:
            text_parts.append(text)
    return "\n\n".join(text_parts)


async def extract_text(filename: str, content: bytes) -> str:
    """
    Extract plain text from a .pdf or .txt upload.

    Raises:
        InvalidInputError: unsupported type, oversized, unreadable, or too
            little text to generate questions from.
    """
    extension = Path(filename or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise InvalidInputError(
            f"Unsupported file type '{extension or filename}'. Upload a PDF or text file.",
            code="UNSUPPORTED_FILE",
        )

    if len(content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise InvalidInputError(f"File exceeds {settings.MAX_UPLOAD_MB} MB", code="FILE_TOO_LARGE")

    if extension == ".pdf":
        try:
            # pypdf is synchronous; keep it off the event loop
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, _read_pdf, content)
        except (PyPdfError, ValueError, KeyError, TypeError, AttributeError, IndexError) as e:
            # Malformed PDFs surface as assorted errors from inside pypdf
            raise InvalidInputError(f"Could not read PDF: {e}", code="UNREADABLE_FILE") from e
    else:
        text = content.decode("utf-8", errors="replace")

    text = text.strip()
    logger.info("Extracted %d characters from %s", len(text), filename)

    if len(text) < settings.IMPORT_MIN_TEXT_CHARS:
        raise InvalidInputError("Document contains too little text", code="TOO_LITTLE_TEXT")
    return text
