"""Database repository implementations"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from core.interfaces import IDocumentStore
from core.domain import (
    Category, DocumentRecord, ErrorCode, FileType, SearchFilters, FILTER_FIELDS
)
from core.errors import PersistenceError, ValidationError
from database.session import Database, DocumentEntity
from config import settings

logger = logging.getLogger(settings.LOGGER_NAME)

SORTABLE_FIELDS = {
    "uploaded_at": DocumentEntity.uploaded_at,
    "title": DocumentEntity.title,
    "access_count": DocumentEntity.access_count,
    "file_size_bytes": DocumentEntity.file_size_bytes,
    "last_accessed": DocumentEntity.last_accessed,
}

UPDATABLE_FIELDS = {
    "title", "category", "team", "project", "tags", "summary",
    "embedding", "last_accessed", "access_count",
}

# Columns covered by keyword search (tags are matched separately).
# Category is a filter dimension, not searchable text.
TEXT_SEARCH_COLUMNS = (
    DocumentEntity.title,
    DocumentEntity.extracted_text,
)

_TERM_PATTERN = re.compile(r"\w+", re.UNICODE)
MIN_TERM_LENGTH = 2


def tokenize_query(query: str) -> List[str]:
    """Split a free-text query into distinct lowercase search terms."""
    seen: List[str] = []
    for term in _TERM_PATTERN.findall(query.lower()):
        if len(term) >= MIN_TERM_LENGTH and term not in seen:
            seen.append(term)
    return seen


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLDocumentStore(IDocumentStore):
    def __init__(self, database: Database):
        self.database = database

    def _to_domain(self, entity: Optional[DocumentEntity]) -> Optional[DocumentRecord]:
        """Converts an SQLAlchemy entity to a domain model."""
        if entity is None:
            return None

        return DocumentRecord(
            id=entity.id,  # type: ignore
            title=entity.title,  # type: ignore
            filename=entity.filename,  # type: ignore
            file_type=FileType(entity.file_type),
            file_size_bytes=entity.file_size_bytes,  # type: ignore
            extracted_text=entity.extracted_text,  # type: ignore
            storage_location=entity.storage_location,  # type: ignore
            category=Category.normalize(entity.category),
            team=entity.team,  # type: ignore
            project=entity.project,  # type: ignore
            tags=list(entity.tags or []),
            summary=entity.summary,  # type: ignore
            embedding=list(entity.embedding) if entity.embedding else None,
            uploaded_by=entity.uploaded_by,  # type: ignore
            uploaded_at=entity.uploaded_at,  # type: ignore
            last_accessed=entity.last_accessed,  # type: ignore
            access_count=entity.access_count or 0,  # type: ignore
        )

    def _to_entity(self, record: DocumentRecord) -> DocumentEntity:
        entity = DocumentEntity(
            id=record.id,
            title=record.title,
            filename=record.filename,
            file_type=record.file_type.value,
            file_size_bytes=record.file_size_bytes,
            extracted_text=record.extracted_text,
            category=record.category.value,
            team=record.team,
            project=record.project,
            tags=list(record.tags),
            summary=record.summary,
            embedding=list(record.embedding) if record.embedding else None,
            uploaded_by=record.uploaded_by,
            storage_location=record.storage_location,
            access_count=record.access_count,
        )
        # Leave timestamps to column defaults unless the caller set them
        if record.uploaded_at is not None:
            entity.uploaded_at = record.uploaded_at
        if record.last_accessed is not None:
            entity.last_accessed = record.last_accessed
        return entity

    def _apply_filters(self, stmt, filters: SearchFilters):
        for field_name, value in filters.as_dict().items():
            if field_name not in FILTER_FIELDS:
                raise ValidationError(f"Unsupported filter: {field_name}", ErrorCode.INVALID_FILTER)
            stmt = stmt.where(getattr(DocumentEntity, field_name) == value)
        return stmt

    async def insert(self, record: DocumentRecord) -> str:
        try:
            async with self.database.session() as session:
                entity = self._to_entity(record)
                session.add(entity)
                await session.commit()
                await session.refresh(entity)
                logger.info(f"Created document {entity.id} in database")
                return entity.id  # type: ignore
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store document: {e}") from e

    async def find_by_id(self, document_id: str) -> Optional[DocumentRecord]:
        try:
            async with self.database.session() as session:
                entity = await session.get(DocumentEntity, document_id)
                return self._to_domain(entity)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load document {document_id}: {e}") from e

    async def find_many(
        self,
        filters: SearchFilters,
        sort: Tuple[str, bool] = ("uploaded_at", True),
        limit: Optional[int] = None,
    ) -> List[DocumentRecord]:
        sort_field, descending = sort
        column = SORTABLE_FIELDS.get(sort_field)
        if column is None:
            raise ValidationError(f"Unsupported sort field: {sort_field}", ErrorCode.INVALID_FILTER)

        stmt = self._apply_filters(select(DocumentEntity), filters)
        stmt = stmt.order_by(column.desc() if descending else column.asc(), DocumentEntity.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._fetch(stmt)

    async def find_with_embedding(self, filters: SearchFilters) -> List[DocumentRecord]:
        stmt = self._apply_filters(select(DocumentEntity), filters)
        stmt = stmt.where(DocumentEntity.embedding.isnot(None))
        stmt = stmt.order_by(DocumentEntity.uploaded_at.desc(), DocumentEntity.id)
        records = await self._fetch(stmt)
        # JSON null and [] both count as "no embedding"
        return [r for r in records if r.embedding]

    async def text_search(self, query: str, filters: SearchFilters, limit: int) -> List[DocumentRecord]:
        """
        Keyword match: a document qualifies when any query term occurs in
        its title, text or tags (case-insensitive).
        """
        terms = tokenize_query(query)
        if not terms or limit <= 0:
            return []

        clauses = []
        tags_text = cast(DocumentEntity.tags, String)
        for term in terms:
            pattern = f"%{_escape_like(term)}%"
            for column in TEXT_SEARCH_COLUMNS:
                clauses.append(column.ilike(pattern, escape="\\"))
            clauses.append(tags_text.ilike(pattern, escape="\\"))

        stmt = self._apply_filters(select(DocumentEntity), filters)
        stmt = (
            stmt.where(or_(*clauses))
            .order_by(DocumentEntity.uploaded_at.desc(), DocumentEntity.id)
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def distinct(self, field: str) -> List[Any]:
        if field not in FILTER_FIELDS:
            raise ValidationError(f"Unsupported field: {field}", ErrorCode.INVALID_FILTER)
        column = getattr(DocumentEntity, field)
        try:
            async with self.database.session() as session:
                result = await session.execute(select(column).distinct().order_by(column))
                return [value for (value,) in result.all() if value]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read distinct {field}: {e}") from e

    async def update(self, document_id: str, fields: Dict[str, Any]) -> bool:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields not updatable: {', '.join(sorted(unknown))}", ErrorCode.INVALID_FILTER)
        try:
            async with self.database.session() as session:
                entity = await session.get(DocumentEntity, document_id)
                if not entity:
                    return False
                for name, value in fields.items():
                    if isinstance(value, Category):
                        value = value.value
                    setattr(entity, name, value)
                await session.commit()
                return True
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update document {document_id}: {e}") from e

    async def delete_by_id(self, document_id: str) -> bool:
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    delete(DocumentEntity).where(DocumentEntity.id == document_id)
                )
                await session.commit()
                return (result.rowcount or 0) > 0
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete document {document_id}: {e}") from e

    async def count(self) -> int:
        try:
            async with self.database.session() as session:
                result = await session.execute(select(func.count(DocumentEntity.id)))
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count documents: {e}") from e

    async def count_by_category(self) -> Dict[str, int]:
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(DocumentEntity.category, func.count(DocumentEntity.id))
                    .group_by(DocumentEntity.category)
                )
                return {category: int(total) for category, total in result.all()}
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to aggregate categories: {e}") from e

    async def _fetch(self, stmt) -> List[DocumentRecord]:
        try:
            async with self.database.session() as session:
                result = await session.execute(stmt)
                docs = [self._to_domain(entity) for entity in result.scalars().all()]
                return [d for d in docs if d is not None]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Document query failed: {e}") from e
