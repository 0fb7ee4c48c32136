from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import uuid4

import pytest

from core.domain import (
    Category, Categorization, CategorizationOutcome, DocumentRecord, FileType,
)
from core.interfaces import ICategorizationGateway, IEmbeddingGateway
from database.session import Database
from infrastructure.file_storage import LocalFileStorage
from infrastructure.repositories import SQLDocumentStore

MEMORY_DB_URL = "sqlite+aiosqlite:///:memory:"
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeEmbedder(IEmbeddingGateway):
    """Returns canned vectors; records every query it is asked to embed."""

    def __init__(self, query_vector: Optional[List[float]] = None, document_vector: Optional[List[float]] = None):
        self.query_vector = query_vector
        self.document_vector = document_vector
        self.queries: List[str] = []
        self.documents: List[str] = []

    async def embed(self, text, max_chars=None):
        return self.document_vector

    async def embed_document(self, title, text):
        self.documents.append(title)
        return self.document_vector

    async def embed_query(self, query):
        self.queries.append(query)
        return self.query_vector


class FakeCategorizer(ICategorizationGateway):
    def __init__(self, result: Optional[Categorization] = None):
        self.result = result
        self.calls = 0

    async def categorize(self, title, text):
        self.calls += 1
        if self.result is None:
            return CategorizationOutcome(Categorization.fallback(), degraded=True, reason="unavailable")
        return CategorizationOutcome(self.result)


def make_record(
    title: str = "Doc",
    text: str = "Some extracted document text",
    category: Category = Category.OTHER,
    embedding: Optional[List[float]] = None,
    minutes: int = 0,
    **overrides,
) -> DocumentRecord:
    """Record uploaded `minutes` after BASE_TIME."""
    values: Dict = dict(
        id=str(uuid4()),
        title=title,
        filename=f"{title}.txt",
        file_type=FileType.TXT,
        file_size_bytes=len(text),
        extracted_text=text,
        storage_location=f"{uuid4()}.txt",
        category=category,
        embedding=embedding,
        uploaded_at=BASE_TIME + timedelta(minutes=minutes),
    )
    values.update(overrides)
    return DocumentRecord(**values)


@pytest.fixture
async def database():
    db = Database(MEMORY_DB_URL)
    await db.init()
    yield db
    await db.close()


@pytest.fixture
async def store(database):
    return SQLDocumentStore(database)


@pytest.fixture
def file_storage(tmp_path):
    return LocalFileStorage(tmp_path / "uploads")
