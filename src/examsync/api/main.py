"""FastAPI application factory."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from examsync.api.routes import sync as sync_routes
from examsync.bootstrap import build_sync_service
from examsync.sync.service import SyncService


def create_app(sync_service: Optional[SyncService] = None) -> FastAPI:
    """Build and return the FastAPI app."""

    service = sync_service or build_sync_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await service.client.close()

    app = FastAPI(
        title="Exam Sync API",
        description="Mirror of the external exam-hall system",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.sync_service = service

    app.include_router(sync_routes.router, prefix="/sync", tags=["sync"])

    return app


# Module-level app instance for uvicorn
app = create_app()
