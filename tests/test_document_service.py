from pathlib import Path

import pytest

from core.errors import NotFoundError, PersistenceError
from infrastructure.repositories import SQLDocumentStore
from services.document_service import DocumentService
from conftest import make_record


class FailingDeleteStore(SQLDocumentStore):
    async def delete_by_id(self, document_id):
        raise PersistenceError("Failed to delete document")


async def stored_record(store, file_storage):
    record = make_record("Brief")
    path = await file_storage.save(b"Q4 campaign plan", record.storage_location)
    await store.insert(record)
    return record, Path(path)


async def test_delete_removes_record_then_file(store, file_storage):
    record, path = await stored_record(store, file_storage)
    service = DocumentService(store, file_storage)

    deleted = await service.delete_document(record.id)

    assert deleted.id == record.id
    assert await store.find_by_id(record.id) is None
    assert not path.exists()


async def test_failed_record_delete_keeps_file(database, file_storage):
    store = FailingDeleteStore(database)
    record, path = await stored_record(store, file_storage)
    service = DocumentService(store, file_storage)

    with pytest.raises(PersistenceError):
        await service.delete_document(record.id)

    assert path.exists()
    assert await store.find_by_id(record.id) is not None


async def test_delete_unknown_document(store, file_storage):
    with pytest.raises(NotFoundError):
        await DocumentService(store, file_storage).delete_document("00000000-0000-0000-0000-000000000000")
