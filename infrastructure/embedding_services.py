"""Embedding generation through the external LLM provider"""
import asyncio
import logging
from typing import List, Optional

from core.interfaces import IEmbeddingGateway
from core.errors import GatewayError
from services.llm_service import LLMService
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)

class LLMEmbeddingGateway(IEmbeddingGateway):
    """
    Embeds documents and queries with the same remote model.

    Input is truncated to a fixed character budget before submission
    (documents: title + text, queries: the raw query). Every failure mode
    (connection, HTTP error, malformed body, timeout) yields None so that
    callers simply skip semantic scoring.
    """

    def __init__(
        self,
        llm: LLMService,
        timeout: float = settings.EMBEDDING_TIMEOUT_SECONDS,
        document_max_chars: int = settings.EMBEDDING_DOCUMENT_MAX_CHARS,
        query_max_chars: int = settings.EMBEDDING_QUERY_MAX_CHARS,
    ):
        self.llm = llm
        self.timeout = timeout
        self.document_max_chars = document_max_chars
        self.query_max_chars = query_max_chars

    async def embed(self, text: str, max_chars: Optional[int] = None) -> Optional[List[float]]:
        if not text or not text.strip():
            logger.warning("Embedding skipped: empty input")
            return None

        if max_chars is not None:
            text = text[:max_chars]

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.llm.embed, text, self.timeout),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Embedding unavailable: timed out after {self.timeout}s")
        except GatewayError as e:
            logger.warning(f"Embedding unavailable: {e}")
        except Exception as e:
            logger.error(f"Embedding unavailable: unexpected error: {e}", exc_info=True)
        return None

    async def embed_document(self, title: str, text: str) -> Optional[List[float]]:
        """Embedding for a whole document: title and body share one budget."""
        return await self.embed(f"{title}\n\n{text}", max_chars=self.document_max_chars)

    async def embed_query(self, query: str) -> Optional[List[float]]:
        return await self.embed(query.strip(), max_chars=self.query_max_chars)
