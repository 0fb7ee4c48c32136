"""Common utilities: file validation, naming, and path management"""
import re
import os
from pathlib import Path
import logging

# ⚠️ DO NOT import settings here - causes circular import with config.py
# Settings is imported lazily inside functions that need it

def _get_logger():
    """Lazy logger initialization to avoid circular import"""
    from config import settings
    return logging.getLogger(settings.LOGGER_NAME)


# ============= Path Management =============

def get_project_root() -> str:
    """Returns the absolute path to the project's root directory."""
    return os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


def get_log_file_path() -> str:
    """Creates the log directory if it doesn't exist and returns the full log file path."""
    project_root = get_project_root()
    log_dir = os.path.join(project_root, 'log')

    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    return os.path.join(log_dir, 'docsearch.log')


# ============= Upload Validation =============

def validate_upload(filename: str, size_bytes: int) -> str:
    """
    Validate an upload's name, type and size before ingestion.

    Returns the normalized file type (extension without dot).
    Raises ValidationError on failure.
    """
    from config import settings  # Lazy import
    from core.errors import ValidationError
    from core.domain import ErrorCode

    if not filename:
        raise ValidationError("No file uploaded", ErrorCode.NO_FILE)

    file_type = get_file_extension(filename)
    if file_type not in settings.ALLOWED_FILE_EXTENSIONS:
        allowed = ", ".join(f".{ext}" for ext in settings.ALLOWED_FILE_EXTENSIONS)
        raise ValidationError(f"Invalid file type. Allowed: {allowed}", ErrorCode.INVALID_FORMAT)

    if size_bytes <= 0:
        raise ValidationError("Uploaded file is empty", ErrorCode.EMPTY_FILE)

    if size_bytes > settings.MAX_FILE_SIZE:
        max_mb = settings.MAX_FILE_SIZE // 1024 // 1024
        raise ValidationError(f"File size exceeds {max_mb}MB limit", ErrorCode.FILE_TOO_LARGE)

    _get_logger().debug(f"Validated upload '{filename}' ({size_bytes} bytes)")
    return file_type


# ============= File Utilities =============

def validate_document_id(doc_id: str) -> bool:
    """Validate document ID format."""
    uuid_pattern = r'^[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}$'
    return bool(re.match(uuid_pattern, doc_id, re.IGNORECASE))


def sanitize_filename(filename: str) -> str:
    """Remove dangerous characters from filename."""
    safe_name = os.path.basename(filename.replace("\\", "/"))
    safe_name = re.sub(r'[^\w\-_\.]', '_', safe_name)
    return safe_name[:100]


def get_file_extension(filename: str) -> str:
    """Extracts and normalizes the file extension from a filename."""
    return Path(filename).suffix[1:].lower()


def title_from_filename(filename: str) -> str:
    """Display title: the original filename without its extension."""
    name = os.path.basename(filename.replace("\\", "/"))
    stem = Path(name).stem
    return stem or name
