import pytest

from core.domain import Category, ErrorCode, FileType
from core.errors import NotFoundError, ValidationError
from services.text_extractor_factory import TextExtractorFactory
from infrastructure.text_extractors import PDFTextExtractor, PlainTextExtractor, WordTextExtractor
from utils.common import (
    get_file_extension,
    sanitize_filename,
    title_from_filename,
    validate_document_id,
    validate_upload,
)


def test_validate_upload_returns_normalized_type():
    assert validate_upload("Brief.PDF", 1024) == "pdf"


def test_validate_upload_limit_message():
    with pytest.raises(ValidationError) as exc_info:
        validate_upload("big.txt", 10 * 1024 * 1024 + 1)
    assert exc_info.value.message == "File size exceeds 10MB limit"
    assert str(exc_info.value) == "[FILE_TOO_LARGE] File size exceeds 10MB limit"


def test_title_and_extension_helpers():
    assert title_from_filename("reports/Q4 Plan.final.docx") == "Q4 Plan.final"
    assert get_file_extension("notes.MD") == "md"
    assert sanitize_filename("../../etc/pass wd.txt") == "pass_wd.txt"


def test_validate_document_id():
    assert validate_document_id("3f2b8c1e-5d4a-4b6c-9e8f-0a1b2c3d4e5f")
    assert not validate_document_id("3f2b8c1e")


def test_category_normalization():
    assert Category.normalize(" analytics ") is Category.ANALYTICS
    assert Category.normalize(None) is Category.OTHER
    assert Category.normalize(42) is Category.OTHER


def test_not_found_defaults():
    error = NotFoundError()
    assert error.status_code == 404
    assert error.error_code is ErrorCode.NOT_FOUND


@pytest.mark.parametrize("file_type, expected", [
    ("pdf", PDFTextExtractor),
    ("docx", WordTextExtractor),
    ("doc", WordTextExtractor),
    ("TXT", PlainTextExtractor),
    (FileType.MD, PlainTextExtractor),
])
def test_extractor_factory_selects_by_type(file_type, expected):
    assert isinstance(TextExtractorFactory().get_extractor(file_type), expected)


def test_extractor_factory_rejects_unknown_type():
    with pytest.raises(ValidationError) as exc_info:
        TextExtractorFactory().get_extractor("pptx")
    assert exc_info.value.error_code is ErrorCode.INVALID_FORMAT


async def test_plain_text_extractor_replaces_bad_bytes(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"  caf\xe9 notes \n")

    assert await PlainTextExtractor().extract(str(path)) == "caf� notes"


async def test_file_storage_round_trip(file_storage):
    path = await file_storage.save(b"content", "abc.txt")

    assert await file_storage.get_path("abc.txt") == path
    assert await file_storage.delete("abc.txt") is True
    assert await file_storage.delete("abc.txt") is False
    assert await file_storage.get_path("abc.txt") is None
