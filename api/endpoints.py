# api/endpoints.py
"""
API endpoints for the document search system.

Upload and search routes require a principal (see api/auth.py); with
REQUIRE_AUTHENTICATION off every request is attributed to the guest.
"""
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from api.auth import verify_access_token
from api.schemas import (
    ConfigResponse,
    DeleteResponse,
    DocumentDetailOut,
    DocumentResponse,
    DocumentsListResponse,
    DocumentSummaryOut,
    ErrorResponse,
    FilterOptions,
    FiltersResponse,
    HealthResponse,
    SearchHit,
    SearchResponse,
    StatsResponse,
    UploadedDocument,
    UploadResponse,
)
from config import settings
from core.domain import Category, Principal, SearchFilters, SearchResults
from core.errors import DocumentServiceError, NotFoundError
from core.interfaces import IDocumentStore
from services.document_service import DocumentService
from services.factory import (
    get_document_service,
    get_document_store,
    get_ingestion_pipeline,
    get_search_engine,
)
from services.ingestion_service import IngestionPipeline
from services.search_service import HybridSearchEngine
from utils.common import validate_document_id, validate_upload

logger = logging.getLogger(settings.LOGGER_NAME)

upload_router = APIRouter(prefix="/api/upload", tags=["upload"])
search_router = APIRouter(prefix="/api/search", tags=["search"])
system_router = APIRouter(prefix="/api", tags=["system"])

SortField = Literal["uploaded_at", "title", "access_count", "file_size_bytes"]


def _checked_id(document_id: str) -> str:
    # Malformed ids cannot exist in the store
    if not validate_document_id(document_id):
        raise NotFoundError()
    return document_id


def _to_response(results: SearchResults) -> SearchResponse:
    if results.mode == "browse":
        hits = [SearchHit(**asdict(doc)) for doc in results.documents]
    else:
        hits = [
            SearchHit(
                **asdict(r.document),
                relevance_score=r.relevance_score,
                text_score=r.text_score,
                semantic_score=round(r.semantic_score, 4),
            )
            for r in results.ranked
        ]
    # Set explicitly so response_model_exclude_unset keeps it
    return SearchResponse(success=True, query=results.query, mode=results.mode, count=len(hits), data=hits)


# ---------- Upload ----------
@upload_router.post("", response_model=UploadResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    principal: Principal = Depends(verify_access_token),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
) -> UploadResponse:
    if file.size is not None:
        validate_upload(file.filename or "", file.size)
    # One byte past the limit is enough for validation to reject it
    content = await file.read(settings.MAX_FILE_SIZE + 1)
    record = await pipeline.ingest_upload(content, file.filename or "", uploaded_by=principal.name)
    return UploadResponse(
        message="Document uploaded and processed successfully",
        data=UploadedDocument(
            id=record.id,
            title=record.title,
            filename=record.filename,
            category=record.category,
            file_size_bytes=record.file_size_bytes,
            uploaded_at=record.uploaded_at,
        ),
    )


@upload_router.get("", response_model=DocumentsListResponse)
async def list_documents(
    principal: Principal = Depends(verify_access_token),
    documents: DocumentService = Depends(get_document_service),
) -> DocumentsListResponse:
    summaries = await documents.list_documents()
    return DocumentsListResponse(
        count=len(summaries),
        data=[DocumentSummaryOut.model_validate(s) for s in summaries],
    )


@upload_router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    principal: Principal = Depends(verify_access_token),
    documents: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    record = await documents.get_document(_checked_id(document_id))
    return DocumentResponse(data=DocumentDetailOut.model_validate(record))


@upload_router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: str,
    principal: Principal = Depends(verify_access_token),
    documents: DocumentService = Depends(get_document_service),
) -> DeleteResponse:
    await documents.delete_document(_checked_id(document_id))
    logger.info(f"Document {document_id} deleted by {principal.name}")
    return DeleteResponse(message="Document deleted successfully")


# ---------- Search ----------
@search_router.get("", response_model=SearchResponse, response_model_exclude_unset=True)
async def search_documents(
    q: Optional[str] = Query(None, max_length=2000),
    category: Optional[str] = None,
    team: Optional[str] = None,
    project: Optional[str] = None,
    file_type: Optional[str] = Query(None, alias="fileType"),
    limit: int = Query(settings.DEFAULT_SEARCH_LIMIT, ge=1, le=settings.MAX_SEARCH_LIMIT),
    principal: Principal = Depends(verify_access_token),
    engine: HybridSearchEngine = Depends(get_search_engine),
) -> SearchResponse:
    filters = SearchFilters(category=category, team=team, project=project, file_type=file_type)
    results = await engine.search(q, filters, limit)
    return _to_response(results)


@search_router.get("/all", response_model=SearchResponse, response_model_exclude_unset=True)
async def browse_documents(
    category: Optional[str] = None,
    team: Optional[str] = None,
    project: Optional[str] = None,
    file_type: Optional[str] = Query(None, alias="fileType"),
    limit: int = Query(settings.BROWSE_DEFAULT_LIMIT, ge=1, le=settings.MAX_SEARCH_LIMIT),
    sort_by: SortField = Query("uploaded_at", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    principal: Principal = Depends(verify_access_token),
    engine: HybridSearchEngine = Depends(get_search_engine),
) -> SearchResponse:
    filters = SearchFilters(category=category, team=team, project=project, file_type=file_type)
    results = await engine.browse(filters, limit, sort=(sort_by, sort_order == "desc"))
    return _to_response(results)


@search_router.get("/filters", response_model=FiltersResponse)
async def get_filter_options(
    principal: Principal = Depends(verify_access_token),
    engine: HybridSearchEngine = Depends(get_search_engine),
) -> FiltersResponse:
    return FiltersResponse(data=FilterOptions(
        categories=await engine.distinct_values("category"),
        teams=await engine.distinct_values("team"),
        projects=await engine.distinct_values("project"),
        file_types=await engine.distinct_values("file_type"),
    ))


@search_router.get("/stats", response_model=StatsResponse)
async def get_stats(
    principal: Principal = Depends(verify_access_token),
    engine: HybridSearchEngine = Depends(get_search_engine),
) -> StatsResponse:
    stats = await engine.aggregate_stats()
    return StatsResponse(data=asdict(stats))


# ---------- System ----------
@system_router.get("/health", response_model=HealthResponse)
async def health_check(store: IDocumentStore = Depends(get_document_store)):
    try:
        total = await store.count()
    except DocumentServiceError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content=HealthResponse(
                status="degraded", database="unavailable", timestamp=datetime.now(timezone.utc)
            ).model_dump(mode="json"),
        )
    return HealthResponse(
        status="ok", documents=total, database="connected", timestamp=datetime.now(timezone.utc)
    )


@system_router.get("/config", response_model=ConfigResponse)
async def get_public_config() -> ConfigResponse:
    return ConfigResponse(
        allowed_extensions=list(settings.ALLOWED_FILE_EXTENSIONS),
        max_file_size_bytes=settings.MAX_FILE_SIZE,
        categories=[c.value for c in Category],
        authentication_required=settings.REQUIRE_AUTHENTICATION,
    )


# ---------- Error translation ----------
async def document_service_error_handler(request: Request, exc: DocumentServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        # Storage details stay in the log
        message = "Internal server error"
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
        message = exc.message

    body = ErrorResponse(message=message, error_code=exc.error_code)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


def register_routes(app: FastAPI) -> None:
    app.include_router(upload_router)
    app.include_router(search_router)
    app.include_router(system_router)
    app.add_exception_handler(DocumentServiceError, document_service_error_handler)
