# services/ingestion_service.py
"""
Upload ingestion: extract -> categorize -> embed -> persist.

Each stage returns a StageOutcome. Extraction and persistence failures are
fatal for the request and remove the stored file; categorization and
embedding failures only degrade the record.
"""
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional
from uuid import uuid4

from config import settings
from core.domain import (
    Categorization, CategorizationOutcome, DocumentRecord, ErrorCode,
    FileType, IngestionState, StageOutcome, StageStatus,
)
from core.errors import DocumentServiceError, PersistenceError, ValidationError
from core.interfaces import (
    ICategorizationGateway, IDocumentStore, IEmbeddingGateway, IFileStorage,
)
from services.text_extractor_factory import TextExtractorFactory
from utils.common import sanitize_filename, title_from_filename, validate_upload

logger = logging.getLogger(settings.LOGGER_NAME)

StateListener = Callable[[str, IngestionState], None]


def extraction_timeout(size_bytes: int) -> float:
    """Extraction budget grows with the file size."""
    size_mb = max(size_bytes, 0) / (1024 * 1024)
    return settings.EXTRACTION_TIMEOUT_BASE_SECONDS + settings.EXTRACTION_TIMEOUT_PER_MB_SECONDS * size_mb


class IngestionPipeline:
    def __init__(
        self,
        store: IDocumentStore,
        categorizer: ICategorizationGateway,
        embedder: IEmbeddingGateway,
        file_storage: IFileStorage,
        extractor_factory: Optional[TextExtractorFactory] = None,
        on_state_change: Optional[StateListener] = None,
    ):
        self.store = store
        self.categorizer = categorizer
        self.embedder = embedder
        self.file_storage = file_storage
        self.extractor_factory = extractor_factory or TextExtractorFactory()
        self.on_state_change = on_state_change

    def _transition(self, document_id: str, state: IngestionState) -> IngestionState:
        logger.debug(f"[INGEST] {document_id} -> {state.value}")
        if self.on_state_change:
            self.on_state_change(document_id, state)
        return state

    # ============ STAGES ============

    async def _extract(self, file_path: str, file_type: FileType, size_bytes: int) -> StageOutcome[str]:
        try:
            extractor = self.extractor_factory.get_extractor(file_type)
        except ValidationError as e:
            return StageOutcome.fatal(e)

        timeout = extraction_timeout(size_bytes)
        try:
            text = await asyncio.wait_for(extractor.extract(file_path), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"[EXTRACT] Timed out after {timeout:.1f}s for {file_path}")
            return StageOutcome.fatal(ValidationError(
                "Text extraction timed out", ErrorCode.EXTRACTION_FAILED
            ))
        except Exception as e:
            logger.error(f"[EXTRACT] Failed for {file_path}: {e}", exc_info=True)
            return StageOutcome.fatal(ValidationError(
                "Failed to extract text from document", ErrorCode.EXTRACTION_FAILED
            ))

        text = (text or "").strip()
        if len(text) < settings.MIN_EXTRACTED_TEXT_LENGTH:
            return StageOutcome.fatal(ValidationError(
                "Could not extract meaningful text from document", ErrorCode.NO_TEXT_FOUND
            ))
        return StageOutcome.ok(text)

    async def _categorize(self, title: str, text: str) -> StageOutcome[Categorization]:
        outcome: CategorizationOutcome = await self.categorizer.categorize(title, text)
        if outcome.degraded:
            logger.warning(f"[CATEGORIZE] Using fallback labels for '{title}': {outcome.reason}")
            return StageOutcome.degraded(outcome.result)
        return StageOutcome.ok(outcome.result)

    async def _embed(self, title: str, text: str) -> StageOutcome[Optional[List[float]]]:
        embedding = await self.embedder.embed_document(title, text)
        if embedding is None:
            logger.warning(f"[EMBED] No embedding for '{title}'; it will only match keyword search")
            return StageOutcome.degraded(None)
        return StageOutcome.ok(embedding)

    async def _persist(self, record: DocumentRecord) -> StageOutcome[str]:
        try:
            document_id = await asyncio.wait_for(
                self.store.insert(record), timeout=settings.PERSISTENCE_TIMEOUT_SECONDS
            )
            return StageOutcome.ok(document_id)
        except asyncio.TimeoutError:
            logger.error(f"[PERSIST] Timed out after {settings.PERSISTENCE_TIMEOUT_SECONDS}s for {record.id}")
            error = PersistenceError("Failed to save document")
        except PersistenceError as e:
            logger.error(f"[PERSIST] {e}")
            error = PersistenceError("Failed to save document")
        except Exception as e:
            logger.error(f"[PERSIST] Unexpected error for {record.id}: {e}", exc_info=True)
            error = PersistenceError("Failed to save document")

        # A timed-out insert may still have committed
        try:
            await self.store.delete_by_id(record.id)
        except DocumentServiceError as e:
            logger.warning(f"[PERSIST] Rollback of {record.id} failed: {e}")
        return StageOutcome.fatal(error)

    # ============ CLEANUP ============

    async def _discard_file(self, storage_location: str) -> bool:
        """Best-effort removal of the stored upload."""
        removed = await self.file_storage.delete(storage_location)
        if not removed:
            logger.warning(f"[CLEANUP] Stored file {storage_location} was not removed")
        return removed

    # ============ MAIN METHODS ============

    async def ingest(
        self,
        file_path: str,
        filename: str,
        file_type: str,
        size_bytes: int,
        uploaded_by: str = "System",
        document_id: Optional[str] = None,
    ) -> DocumentRecord:
        """
        Run the pipeline over a file already written to storage.

        Returns the stored record. Raises ValidationError when no usable
        text can be extracted and PersistenceError when the record cannot
        be saved. The stored file is removed on every exit that does not
        end in a stored record, cancellation included.
        """
        document_id = document_id or str(uuid4())
        storage_location = Path(file_path).name
        title = title_from_filename(filename)
        stored = False
        try:
            self._transition(document_id, IngestionState.RECEIVED)
            try:
                kind = FileType(str(getattr(file_type, "value", file_type)).lower())
            except ValueError:
                self._transition(document_id, IngestionState.REJECTED)
                raise ValidationError(f"Unsupported file type: '{file_type}'", ErrorCode.INVALID_FORMAT) from None

            self._transition(document_id, IngestionState.EXTRACTING)
            extracted = await self._extract(file_path, kind, size_bytes)
            if extracted.status is StageStatus.FATAL:
                self._transition(document_id, IngestionState.REJECTED)
                logger.error(f"[INGEST] Rejected '{filename}': {extracted.error}")
                raise extracted.error
            text = extracted.value

            self._transition(document_id, IngestionState.CATEGORIZING)
            labels = (await self._categorize(title, text)).value

            self._transition(document_id, IngestionState.EMBEDDING)
            embedding = (await self._embed(title, text)).value

            record = DocumentRecord(
                id=document_id,
                title=title,
                filename=filename,
                file_type=kind,
                file_size_bytes=size_bytes,
                extracted_text=text,
                storage_location=storage_location,
                category=labels.category,
                team=labels.team,
                project=labels.project,
                tags=list(labels.tags),
                summary=labels.summary,
                embedding=embedding,
                uploaded_by=uploaded_by,
                uploaded_at=datetime.now(timezone.utc),
            )

            self._transition(document_id, IngestionState.PERSISTING)
            persisted = await self._persist(record)
            if persisted.status is StageStatus.FATAL:
                self._transition(document_id, IngestionState.FAILED)
                raise persisted.error

            stored = True
            self._transition(document_id, IngestionState.STORED)
            logger.info(
                f"[INGEST] Stored '{filename}' as {document_id} "
                f"(category={record.category.value}, embedded={embedding is not None})"
            )
            return record
        finally:
            # Every exit short of STORED (errors, cancellation) drops the upload
            if not stored:
                await self._discard_file(storage_location)

    async def ingest_upload(self, content: bytes, filename: str, uploaded_by: str = "System") -> DocumentRecord:
        """Validate raw upload bytes, store them, then run the pipeline."""
        file_type = validate_upload(filename, len(content) if content else 0)

        document_id = str(uuid4())
        suffix = sanitize_filename(Path(filename).suffix.lower())
        stored_name = f"{document_id}{suffix}"
        file_path = await self.file_storage.save(content, stored_name)

        return await self.ingest(
            file_path=file_path,
            filename=filename,
            file_type=file_type,
            size_bytes=len(content),
            uploaded_by=uploaded_by,
            document_id=document_id,
        )
