# services/document_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from config import settings
from core.domain import DocumentRecord, DocumentSummary, SearchFilters
from core.errors import DocumentServiceError, NotFoundError
from core.interfaces import IDocumentStore, IFileStorage

logger = logging.getLogger(settings.LOGGER_NAME)


class DocumentService:
    """Read and delete operations on stored documents."""

    def __init__(self, store: IDocumentStore, file_storage: IFileStorage):
        self.store = store
        self.file_storage = file_storage

    async def list_documents(self, limit: Optional[int] = None) -> List[DocumentSummary]:
        records = await self.store.find_many(SearchFilters(), sort=("uploaded_at", True), limit=limit)
        return [r.to_summary() for r in records]

    async def record_access(self, record: DocumentRecord) -> bool:
        """
        Bump access analytics for a document.

        Best-effort: a failed update is logged and reported as False,
        never raised to the reader.
        """
        try:
            return await self.store.update(record.id, {
                "last_accessed": datetime.now(timezone.utc),
                "access_count": (record.access_count or 0) + 1,
            })
        except DocumentServiceError as e:
            logger.warning(f"Access tracking failed for {record.id}: {e}")
            return False

    async def get_document(self, document_id: str) -> DocumentRecord:
        record = await self.store.find_by_id(document_id)
        if record is None:
            raise NotFoundError()

        if await self.record_access(record):
            record.access_count += 1
            record.last_accessed = datetime.now(timezone.utc)
        return record

    async def delete_document(self, document_id: str) -> DocumentRecord:
        """Delete the record, then the stored file (best-effort)."""
        record = await self.store.find_by_id(document_id)
        if record is None:
            raise NotFoundError()

        # A failed record delete must leave the file in place
        if not await self.store.delete_by_id(document_id):
            raise NotFoundError()

        if record.storage_location:
            removed = await self.file_storage.delete(record.storage_location)
            if not removed:
                logger.warning(f"Stored file for {document_id} could not be removed")
        logger.info(f"Deleted document {document_id} ('{record.filename}')")
        return record
