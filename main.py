# main.py
"""Application entrypoint: wiring, lifespan and middleware"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from services.logger_config import setup_logging
from database.session import Database
from api.endpoints import register_routes
from infrastructure.file_storage import LocalFileStorage
from services.llm_service import LLMService

setup_logging()
logger = logging.getLogger(settings.LOGGER_NAME)


def create_app(
    database: Optional[Database] = None,
    llm_service: Optional[LLMService] = None,
    file_storage: Optional[LocalFileStorage] = None,
) -> FastAPI:
    """Build the application. Collaborators may be injected for tests."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        logger.info("Starting application...")

        app.state.database = database or Database()
        await app.state.database.init()
        logger.info("Database initialized")

        app.state.llm_service = llm_service or LLMService()
        app.state.file_storage = file_storage or LocalFileStorage(base_path=settings.UPLOADS_DIR)
        logger.info(f"Services initialized (LLM at {app.state.llm_service.base_url})")
        yield

        await app.state.database.close()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
