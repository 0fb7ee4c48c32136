# api/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from core.domain import Category, ErrorCode, FileType


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    error_code: Optional[ErrorCode] = None

class DocumentSummaryOut(BaseModel):
    """Listing/search view: no extracted text, no embedding."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    filename: str
    file_type: FileType
    file_size_bytes: int
    category: Category
    team: str
    project: str
    tags: List[str]
    summary: Optional[str] = None
    uploaded_by: str
    uploaded_at: Optional[datetime] = None
    last_accessed: Optional[datetime] = None
    access_count: int = 0
    has_embedding: bool = False

class DocumentDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    filename: str
    file_type: FileType
    file_size_bytes: int
    extracted_text: str
    category: Category
    team: str
    project: str
    tags: List[str]
    summary: Optional[str] = None
    uploaded_by: str
    uploaded_at: Optional[datetime] = None
    last_accessed: Optional[datetime] = None
    access_count: int = 0

class UploadedDocument(BaseModel):
    id: str
    title: str
    filename: str
    category: Category
    file_size_bytes: int
    uploaded_at: Optional[datetime] = None

class UploadResponse(BaseModel):
    success: bool = True
    message: str
    data: UploadedDocument

class DocumentResponse(BaseModel):
    success: bool = True
    data: DocumentDetailOut

class DocumentsListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[DocumentSummaryOut]

class DeleteResponse(BaseModel):
    success: bool = True
    message: str

class SearchHit(DocumentSummaryOut):
    # Absent in browse mode
    relevance_score: Optional[int] = None
    text_score: Optional[float] = None
    semantic_score: Optional[float] = None

class SearchResponse(BaseModel):
    success: bool = True
    query: Optional[str] = None
    mode: str
    count: int
    data: List[SearchHit]

class FilterOptions(BaseModel):
    categories: List[str]
    teams: List[str]
    projects: List[str]
    file_types: List[str]

class FiltersResponse(BaseModel):
    success: bool = True
    data: FilterOptions

class CategoryCount(BaseModel):
    category: str
    count: int

class RecentUpload(BaseModel):
    id: str
    title: str
    uploaded_at: Optional[datetime] = None

class StatsData(BaseModel):
    total_documents: int
    category_breakdown: List[CategoryCount]
    recent_uploads: List[RecentUpload]

class StatsResponse(BaseModel):
    success: bool = True
    data: StatsData

class HealthResponse(BaseModel):
    status: str
    documents: Optional[int] = None
    database: str
    timestamp: datetime

class ConfigResponse(BaseModel):
    allowed_extensions: List[str]
    max_file_size_bytes: int
    categories: List[str]
    authentication_required: bool
