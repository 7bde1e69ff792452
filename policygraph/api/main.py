"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from policygraph.api.dependencies import get_editor, reset_editor
from policygraph.api.routes import drafts_router, export_router, graph_router
from policygraph.exceptions import (
    DraftStateError,
    ExportValidationError,
    ParseError,
    SemanticConflictError,
    StructuralError,
)
from policygraph.logging_setup import configure_logging

# Configure logging on module load
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    logger.info("Starting policy graph API...")
    get_editor()
    yield
    logger.info("Shutting down policy graph API...")
    reset_editor()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Policy Graph API",
        description="Incremental editing and export of decision policy graphs",
        version="1.0.0",
        lifespan=lifespan,
    )

    application.include_router(graph_router, prefix="/graph", tags=["Graph"])
    application.include_router(drafts_router, prefix="/draft", tags=["Drafts"])
    application.include_router(export_router, prefix="/export", tags=["Export"])

    # Exception handlers
    @application.exception_handler(StructuralError)
    async def structural_error_handler(
        request: Request, exc: StructuralError
    ) -> JSONResponse:
        logger.warning(f"Structural error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=409,
            content={
                "detail": str(exc),
                "error_code": "STRUCTURAL_ERROR",
                "reason": exc.reason,
                "source": exc.source,
                "target": exc.target,
            },
        )

    @application.exception_handler(SemanticConflictError)
    async def conflict_error_handler(
        request: Request, exc: SemanticConflictError
    ) -> JSONResponse:
        logger.info(f"Condition conflict on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=409,
            content={
                "detail": str(exc),
                "error_code": "SEMANTIC_CONFLICT",
                "conflicts": [e.model_dump(mode="json") for e in exc.conflicts],
            },
        )

    @application.exception_handler(ExportValidationError)
    async def export_error_handler(
        request: Request, exc: ExportValidationError
    ) -> JSONResponse:
        logger.info(f"Export blocked on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=422,
            content={
                "detail": str(exc),
                "error_code": "EXPORT_INVALID",
                "reason": exc.reason,
                "node_ids": exc.node_ids,
            },
        )

    @application.exception_handler(ParseError)
    async def parse_error_handler(request: Request, exc: ParseError) -> JSONResponse:
        logger.warning(f"Parse error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "error_code": "PARSE_ERROR"},
        )

    @application.exception_handler(DraftStateError)
    async def draft_state_error_handler(
        request: Request, exc: DraftStateError
    ) -> JSONResponse:
        logger.warning(f"Draft state error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "error_code": "DRAFT_STATE_ERROR"},
        )

    @application.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        error_str = str(exc).lower()
        if "not found" in error_str:
            logger.debug(f"Not found on {request.method} {request.url.path}: {exc}")
            return JSONResponse(
                status_code=404,
                content={"detail": str(exc), "error_code": "NOT_FOUND"},
            )
        logger.warning(f"Value error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "error_code": "VALUE_ERROR"},
        )

    # Health check endpoint
    @application.get("/health")
    async def health_check():
        return {"status": "healthy", "version": "1.0.0"}

    return application


# Create app instance
app = create_app()
