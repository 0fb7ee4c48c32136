"""Core interfaces for the document search system"""
from abc import ABC, abstractmethod
from typing import Any, List, Dict, Optional, Tuple

from core.domain import (
    CategorizationOutcome, DocumentRecord, SearchFilters
)

# ============= Storage Interface =============
class IDocumentStore(ABC):
    """
    Interface for document record persistence.

    Does NOT handle: physical files (see IFileStorage).
    Implementations: SQLDocumentStore. Swap for MongoDB, DynamoDB, etc.
    Write failures surface as PersistenceError.
    """

    @abstractmethod
    async def insert(self, record: DocumentRecord) -> str:
        """Persist a new record and return its id."""
        pass

    @abstractmethod
    async def find_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        """Get a record by id, None if absent."""
        pass

    @abstractmethod
    async def find_many(
        self,
        filters: SearchFilters,
        sort: Tuple[str, bool] = ("uploaded_at", True),
        limit: Optional[int] = None,
    ) -> List[DocumentRecord]:
        """
        Filtered listing.

        sort is (field, descending).
        """
        pass

    @abstractmethod
    async def find_with_embedding(self, filters: SearchFilters) -> List[DocumentRecord]:
        """All filtered records whose embedding is not null."""
        pass

    @abstractmethod
    async def text_search(self, query: str, filters: SearchFilters, limit: int) -> List[DocumentRecord]:
        """Records containing any of the query terms, restricted by filters."""
        pass

    @abstractmethod
    async def distinct(self, field: str) -> List[Any]:
        """Distinct non-empty values of a filterable field."""
        pass

    @abstractmethod
    async def update(self, document_id: str, fields: Dict[str, Any]) -> bool:
        """Partial update. Returns False when the record does not exist."""
        pass

    @abstractmethod
    async def delete_by_id(self, document_id: str) -> bool:
        """Delete a record. Returns False when the record does not exist."""
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def count_by_category(self) -> Dict[str, int]:
        pass

# ============= Text Extraction Interface =============
class ITextExtractor(ABC):
    """Converts a stored file of a known type into plain text."""

    @abstractmethod
    async def extract(self, file_path: str) -> str:
        """Return the extracted text, raising on unreadable input."""
        pass

# ============= LLM Gateway Interfaces =============
class IEmbeddingGateway(ABC):
    """
    Embedding generation behind a failure-tolerant interface.

    Never raises: any failure is returned as None ("unavailable").
    """

    @abstractmethod
    async def embed(self, text: str, max_chars: Optional[int] = None) -> Optional[List[float]]:
        pass

    @abstractmethod
    async def embed_document(self, title: str, text: str) -> Optional[List[float]]:
        pass

    @abstractmethod
    async def embed_query(self, query: str) -> Optional[List[float]]:
        pass


class ICategorizationGateway(ABC):
    """
    LLM classification behind a failure-tolerant interface.

    Never raises: on failure the outcome carries the fallback labels.
    """

    @abstractmethod
    async def categorize(self, title: str, text: str) -> CategorizationOutcome:
        pass

# ============= File Storage Interface =============
class IFileStorage(ABC):
    """Interface for physical file storage operations"""

    @abstractmethod
    async def save(self, content: bytes, filename: str) -> str:
        """
        Writes file content to the configured storage directory.

        The filename should already be sanitized and unique (typically
        UUID-based) by the caller.

        Returns:
            str: Full absolute path to the saved file

        Raises:
            OSError: If file cannot be written to disk (permissions, disk full, etc.)
        """
        pass

    @abstractmethod
    async def get_path(self, filename: str) -> Optional[str]:
        """Get the full path to a stored file."""
        pass

    @abstractmethod
    async def delete(self, filename: str) -> bool:
        """Delete a stored file. Best-effort: never raises."""
        pass
