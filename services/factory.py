# services/factory.py
from fastapi import Depends, Request

from config import settings
from core.interfaces import (
    ICategorizationGateway, IDocumentStore, IEmbeddingGateway, IFileStorage,
)
from database.session import Database
from infrastructure.categorization_services import LLMCategorizationGateway
from infrastructure.embedding_services import LLMEmbeddingGateway
from infrastructure.repositories import SQLDocumentStore
from services.document_service import DocumentService
from services.ingestion_service import IngestionPipeline
from services.llm_service import LLMService
from services.search_service import HybridSearchEngine
from services.text_extractor_factory import TextExtractorFactory

# Provider functions for each component.
# Long-lived handles are created in the application lifespan and kept on app.state.
def get_database(request: Request) -> Database:
    return request.app.state.database

def get_llm_service(request: Request) -> LLMService:
    return request.app.state.llm_service

def get_file_storage(request: Request) -> IFileStorage:
    return request.app.state.file_storage

def get_document_store(database: Database = Depends(get_database)) -> IDocumentStore:
    return SQLDocumentStore(database)

def get_embedding_gateway(llm: LLMService = Depends(get_llm_service)) -> IEmbeddingGateway:
    return LLMEmbeddingGateway(llm, timeout=settings.EMBEDDING_TIMEOUT_SECONDS)

def get_categorization_gateway(llm: LLMService = Depends(get_llm_service)) -> ICategorizationGateway:
    return LLMCategorizationGateway(llm, timeout=settings.CATEGORIZATION_TIMEOUT_SECONDS)

def get_text_extractor_factory() -> TextExtractorFactory:
    return TextExtractorFactory()

# Main service providers using FastAPI DI
def get_ingestion_pipeline(
    store: IDocumentStore = Depends(get_document_store),
    categorizer: ICategorizationGateway = Depends(get_categorization_gateway),
    embedder: IEmbeddingGateway = Depends(get_embedding_gateway),
    file_storage: IFileStorage = Depends(get_file_storage),
    extractor_factory: TextExtractorFactory = Depends(get_text_extractor_factory),
) -> IngestionPipeline:
    """
    Create the ingestion pipeline with full dependency injection.
    Override individual providers in tests via app.dependency_overrides.
    """
    return IngestionPipeline(
        store=store,
        categorizer=categorizer,
        embedder=embedder,
        file_storage=file_storage,
        extractor_factory=extractor_factory,
    )

def get_search_engine(
    store: IDocumentStore = Depends(get_document_store),
    embedder: IEmbeddingGateway = Depends(get_embedding_gateway),
) -> HybridSearchEngine:
    return HybridSearchEngine(store=store, embedder=embedder)

def get_document_service(
    store: IDocumentStore = Depends(get_document_store),
    file_storage: IFileStorage = Depends(get_file_storage),
) -> DocumentService:
    return DocumentService(store=store, file_storage=file_storage)
