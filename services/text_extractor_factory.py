# services/text_extractor_factory.py
"""Picks the text extractor for an upload's file type"""
from typing import Dict, Type

from core.domain import ErrorCode, FileType
from core.errors import ValidationError
from core.interfaces import ITextExtractor
from infrastructure.text_extractors import (
    PDFTextExtractor,
    PlainTextExtractor,
    WordTextExtractor,
)

import logging

def _get_logger():
    from config import settings
    return logging.getLogger(settings.LOGGER_NAME)

logger = _get_logger()

class TextExtractorFactory:
    """
    Factory for creating text extractors based on file type.
    Legacy .doc files go through the Word extractor as well.
    """

    def __init__(self, strategies: Dict[FileType, Type[ITextExtractor]] = None):
        self._strategies: Dict[FileType, Type[ITextExtractor]] = strategies or {
            FileType.PDF: PDFTextExtractor,
            FileType.DOCX: WordTextExtractor,
            FileType.DOC: WordTextExtractor,
            FileType.TXT: PlainTextExtractor,
            FileType.MD: PlainTextExtractor,
        }

    def get_extractor(self, file_type: str) -> ITextExtractor:
        """
        Get extractor for file type ("pdf", "docx", "doc", "txt", "md").

        Raises:
            ValidationError: If the file type is not supported
        """
        if isinstance(file_type, FileType):
            key = file_type
        else:
            try:
                key = FileType(str(file_type).lower())
            except ValueError:
                key = None

        extractor_class = self._strategies.get(key) if key else None
        if not extractor_class:
            available = ", ".join(t.value for t in self._strategies)
            raise ValidationError(
                f"Unsupported file type: '{file_type}'. Available: {available}",
                ErrorCode.INVALID_FORMAT,
            )

        logger.debug(f"Using {extractor_class.__name__} for '{file_type}'")
        return extractor_class()
