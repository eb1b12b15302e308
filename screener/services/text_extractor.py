# screener/services/text_extractor.py
"""
Helpers to extract plain text from validated resume bytes.
- PDF  -> pdfminer.six
- DOCX -> python-docx
- DOC  -> not supported (legacy OLE2 Word has no pure-python reader here)

Parsing is blocking, so extract_text() runs it in the default executor.
Empty or whitespace-only output counts as a failed extraction.
"""

import asyncio
import io
import logging
from typing import Awaitable, Callable, Dict

from screener.core.errors import ExtractionError, ExtractionUnsupportedError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DOC_MEDIA_TYPE = "application/msword"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# (content, media_type) -> text
TextExtractor = Callable[[bytes, str], Awaitable[str]]


def parse_pdf_bytes(b: bytes) -> str:
    """
    Extract text from PDF bytes using pdfminer.six high-level API.
    """
    from pdfminer.high_level import extract_text_to_fp

    output = io.StringIO()
    extract_text_to_fp(io.BytesIO(b), output, laparams=None)
    return output.getvalue()


def parse_docx_bytes(b: bytes) -> str:
    from docx import Document

    doc = Document(io.BytesIO(b))
    paras = [p.text.strip() for p in doc.paragraphs if p.text and p.text.strip()]
    # table cells carry a lot of resume content (skills grids, dates)
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text and c.text.strip()]
            if cells:
                paras.append(" | ".join(cells))
    return "\n".join(paras)


_PARSERS: Dict[str, Callable[[bytes], str]] = {
    PDF_MEDIA_TYPE: parse_pdf_bytes,
    DOCX_MEDIA_TYPE: parse_docx_bytes,
}


def extract_text_sync(content: bytes, media_type: str) -> str:
    base = (media_type or "").split(";")[0].strip().lower()
    parser = _PARSERS.get(base)
    if parser is None:
        raise ExtractionUnsupportedError(f"Text extraction is not supported for {base or 'unknown'} files.")

    try:
        text = parser(content)
    except Exception as exc:
        logger.error("Error extracting text (media_type=%s): %s", base, exc)
        raise ExtractionError("Text extraction failed.") from exc

    if not text or not text.strip():
        raise ExtractionError("No text content found in file.")
    return text.strip()


async def extract_text(content: bytes, media_type: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, extract_text_sync, content, media_type)
