# config.py
"""Application configuration"""
from typing import List
from pydantic_settings import BaseSettings
from utils.common import get_log_file_path, get_project_root

class Settings(BaseSettings):
    """Application configuration"""

    # Logger configuration
    LOG_FILE_PATH: str = get_log_file_path()
    LOGGER_NAME: str = "docsearch"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./documents.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour
    DB_ECHO: bool = False

    # Uploads
    UPLOADS_DIR: str = f"{get_project_root()}/uploads"
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    ALLOWED_FILE_EXTENSIONS: List[str] = ["pdf", "docx", "doc", "txt", "md"]
    MIN_EXTRACTED_TEXT_LENGTH: int = 10

    # LLM provider (Ollama-compatible HTTP API)
    LLM_BASE_URL: str = "http://localhost:11434"
    LLM_MODEL_NAME: str = "llama3.1:8b"
    LLM_API_KEY: str = ""
    EMBEDDING_MODEL_NAME: str = "nomic-embed-text"

    # Categorization
    CATEGORIZATION_SAMPLE_CHARS: int = 2000
    CATEGORIZATION_MAX_TAGS: int = 10
    CATEGORIZATION_MAX_TAG_LENGTH: int = 50

    # Embedding input budgets (chars)
    EMBEDDING_DOCUMENT_MAX_CHARS: int = 5000
    EMBEDDING_QUERY_MAX_CHARS: int = 5000

    # Timeouts (seconds)
    CATEGORIZATION_TIMEOUT_SECONDS: float = 30.0
    EMBEDDING_TIMEOUT_SECONDS: float = 15.0
    EXTRACTION_TIMEOUT_BASE_SECONDS: float = 10.0
    EXTRACTION_TIMEOUT_PER_MB_SECONDS: float = 6.0
    PERSISTENCE_TIMEOUT_SECONDS: float = 10.0

    # Hybrid search policy (product-level tuning knobs)
    SEMANTIC_SCORE_THRESHOLD: float = 0.3
    HYBRID_TEXT_WEIGHT: float = 0.6
    HYBRID_SEMANTIC_WEIGHT: float = 0.4
    TEXT_CANDIDATE_MULTIPLIER: int = 2

    # Search defaults
    DEFAULT_SEARCH_LIMIT: int = 20
    MAX_SEARCH_LIMIT: int = 100
    BROWSE_DEFAULT_LIMIT: int = 50
    RECENT_UPLOADS_LIMIT: int = 5

    # Security
    REQUIRE_AUTHENTICATION: bool = False
    API_TOKENS: List[str] = []  # "name:token" pairs
    GUEST_PRINCIPAL: str = "guest"

    # App metadata
    APP_TITLE: str = "Document Search System"
    APP_VERSION: str = "1.0.0"
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
