"""Shared enumerations and domain models used across the application."""
from enum import Enum

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional, Generic, TypeVar

# ============= Enums =============

class ErrorCode(str, Enum):
    """Error codes for user-facing error messages."""
    NO_FILE = "NO_FILE"
    EMPTY_FILE = "EMPTY_FILE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FORMAT = "INVALID_FORMAT"
    NO_TEXT_FOUND = "NO_TEXT_FOUND"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    INVALID_FILTER = "INVALID_FILTER"
    NOT_FOUND = "NOT_FOUND"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    UNAUTHORIZED = "UNAUTHORIZED"


class Category(str, Enum):
    """Closed set of document categories."""
    STRATEGY = "Strategy"
    CAMPAIGN = "Campaign"
    RESEARCH = "Research"
    CREATIVE = "Creative"
    ANALYTICS = "Analytics"
    OTHER = "Other"

    @staticmethod
    def normalize(value: Any) -> 'Category':
        """Map raw classifier output onto the enumeration, defaulting to Other."""
        if isinstance(value, Category):
            return value
        if not isinstance(value, str):
            return Category.OTHER
        candidate = value.strip().lower()
        for category in Category:
            if category.value.lower() == candidate:
                return category
        return Category.OTHER


class FileType(str, Enum):
    """Supported upload formats."""
    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"
    TXT = "txt"
    MD = "md"


class IngestionState(str, Enum):
    """Ingestion pipeline states."""
    RECEIVED = "received"
    EXTRACTING = "extracting"
    REJECTED = "rejected"
    CATEGORIZING = "categorizing"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    FAILED = "failed"
    STORED = "stored"


class StageStatus(str, Enum):
    """Outcome tag returned by each pipeline stage."""
    OK = "ok"
    DEGRADED = "degraded"
    FATAL = "fatal"


DEFAULT_TEAM = "General"
DEFAULT_PROJECT = "Uncategorized"
DEFAULT_TAGS = ["document", "marketing"]
DEFAULT_SUMMARY = "Document uploaded to the system."

FILTER_FIELDS = ("category", "team", "project", "file_type")


# ============= Domain Models =============

@dataclass
class DocumentRecord:
    """Domain model for a stored document"""
    id: str
    title: str
    filename: str
    file_type: FileType
    file_size_bytes: int
    extracted_text: str
    storage_location: str
    category: Category = Category.OTHER
    team: str = DEFAULT_TEAM
    project: str = DEFAULT_PROJECT
    tags: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    embedding: Optional[List[float]] = None  # Absent when embedding was unavailable
    uploaded_by: str = "System"
    uploaded_at: Optional[datetime] = None
    last_accessed: Optional[datetime] = None
    access_count: int = 0

    def to_summary(self) -> 'DocumentSummary':
        return DocumentSummary(
            id=self.id,
            title=self.title,
            filename=self.filename,
            file_type=self.file_type,
            file_size_bytes=self.file_size_bytes,
            category=self.category,
            team=self.team,
            project=self.project,
            tags=list(self.tags),
            summary=self.summary,
            uploaded_by=self.uploaded_by,
            uploaded_at=self.uploaded_at,
            last_accessed=self.last_accessed,
            access_count=self.access_count,
            has_embedding=self.embedding is not None,
        )


@dataclass
class DocumentSummary:
    """Search/listing view of a document: no text body, no embedding."""
    id: str
    title: str
    filename: str
    file_type: FileType
    file_size_bytes: int
    category: Category
    team: str
    project: str
    tags: List[str]
    summary: Optional[str]
    uploaded_by: str
    uploaded_at: Optional[datetime]
    last_accessed: Optional[datetime]
    access_count: int
    has_embedding: bool = False


@dataclass
class RankedDocument:
    """A hybrid search hit with its component and fused scores."""
    document: DocumentSummary
    text_score: float
    semantic_score: float
    relevance_score: int


@dataclass
class SearchFilters:
    """Conjunction of equality constraints applied to every query."""
    category: Optional[str] = None
    team: Optional[str] = None
    project: Optional[str] = None
    file_type: Optional[str] = None

    def as_dict(self) -> Dict[str, str]:
        """Only the constraints that are actually set."""
        values = {
            "category": self.category,
            "team": self.team,
            "project": self.project,
            "file_type": self.file_type,
        }
        return {k: v for k, v in values.items() if v}


@dataclass
class SearchResults:
    """Result of a search call: ranked hits or a browse listing."""
    query: Optional[str]
    mode: str  # "hybrid" or "browse"
    ranked: List[RankedDocument] = field(default_factory=list)
    documents: List[DocumentSummary] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.ranked) if self.mode == "hybrid" else len(self.documents)


@dataclass
class Categorization:
    """Structured label set produced by the categorization gateway"""
    category: Category
    team: str
    project: str
    tags: List[str]
    summary: Optional[str]

    @staticmethod
    def fallback() -> 'Categorization':
        return Categorization(
            category=Category.OTHER,
            team=DEFAULT_TEAM,
            project=DEFAULT_PROJECT,
            tags=list(DEFAULT_TAGS),
            summary=DEFAULT_SUMMARY,
        )


@dataclass
class CategorizationOutcome:
    """Tagged result: parsed labels, or the fallback when degraded."""
    result: Categorization
    degraded: bool = False
    reason: Optional[str] = None


T = TypeVar("T")


@dataclass
class StageOutcome(Generic[T]):
    """Outcome of a single pipeline stage."""
    status: StageStatus
    value: Optional[T] = None
    error: Optional[Exception] = None

    @staticmethod
    def ok(value: T) -> 'StageOutcome[T]':
        return StageOutcome(StageStatus.OK, value=value)

    @staticmethod
    def degraded(value: T, error: Optional[Exception] = None) -> 'StageOutcome[T]':
        return StageOutcome(StageStatus.DEGRADED, value=value, error=error)

    @staticmethod
    def fatal(error: Exception) -> 'StageOutcome[T]':
        return StageOutcome(StageStatus.FATAL, error=error)


@dataclass
class Principal:
    """Identity attached to a request by the auth layer"""
    name: str


@dataclass
class DocumentStats:
    total_documents: int
    category_breakdown: List[Dict[str, Any]]
    recent_uploads: List[Dict[str, Any]]
