from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import StoreProvider
from .logging_config import setup_logging
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "CRUD and title search operations for Todo items backed by SQLite.",
    },
]


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors raised by the
    framework itself (e.g. a body that is not valid JSON).

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": exc.errors(),
        },
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application: logging, CORS, error handlers, the store provider
    and the todo router mounted at /todos.

    Args:
        settings: Explicit settings; read from the environment when omitted.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    provider = StoreProvider(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        provider.close()

    app = FastAPI(
        title="Todo API",
        description="A simple todo service storing its data in SQLite.",
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store_provider = provider

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.get("/", summary="Welcome", tags=["health"])
    def root():
        """Greeting returned on the root path."""
        logger.info("Root endpoint hit")
        return {"message": "Welcome to the Todo API"}

    @app.get("/health", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"status": "ok"}

    app.include_router(todos_router.router, prefix="/todos")
    logger.info("Todo API ready (store: %s)", settings.sqlite_db_path)
    return app


def main() -> None:
    """
    Serve the application with uvicorn on HOST/PORT. uvicorn builds the app through
    the factory, so importing this module configures nothing.
    """
    settings = get_settings()
    uvicorn.run("src.api.main:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
