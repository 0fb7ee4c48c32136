"""Plain-text extraction for uploaded files.

One extractor per format family:
- PDF: PyMuPDF page text, pages separated by blank lines.
- DOCX/DOC: unstructured's docx partitioner, elements joined by blank lines.
- TXT/MD: decoded as UTF-8 (undecodable bytes replaced).

Extraction is blocking, so each extractor hands the work to a thread.
"""
import asyncio
import logging
from pathlib import Path

import fitz  # PyMuPDF

from core.interfaces import ITextExtractor
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)


class PDFTextExtractor(ITextExtractor):
    """Reads embedded text from every page of a PDF."""

    def _extract_sync(self, file_path: str) -> str:
        with fitz.open(file_path) as doc:
            pages = [page.get_text("text").strip() for page in doc]
        logger.debug(f"Extracted text from {len(pages)} PDF pages")
        return "\n\n".join(p for p in pages if p).strip()

    async def extract(self, file_path: str) -> str:
        return await asyncio.to_thread(self._extract_sync, file_path)


class WordTextExtractor(ITextExtractor):
    """Reads paragraphs, headings and tables from Word documents."""

    def _extract_sync(self, file_path: str) -> str:
        from unstructured.partition.docx import partition_docx

        elements = partition_docx(filename=file_path)
        parts = [str(element).strip() for element in elements]
        return "\n\n".join(p for p in parts if p).strip()

    async def extract(self, file_path: str) -> str:
        return await asyncio.to_thread(self._extract_sync, file_path)


class PlainTextExtractor(ITextExtractor):
    """Text and markdown files."""

    def _extract_sync(self, file_path: str) -> str:
        return Path(file_path).read_text(encoding="utf-8", errors="replace").strip()

    async def extract(self, file_path: str) -> str:
        return await asyncio.to_thread(self._extract_sync, file_path)
