from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .connection import ConnectionManager
from .errors import NotConnectedError, StoreConnectionError, TodoNotFoundError
from .logging_config import setup_logging
from .repositories import build_repository
from .routers import todos as todos_router
from .settings import get_cors_origins, get_settings

openapi_tags = [
    {"name": "health", "description": "Service health and database connection state."},
    {"name": "todos", "description": "CRUD operations for Todo items stored in MongoDB."},
]


# PUBLIC_INTERFACE
def create_app(manager: Optional[ConnectionManager] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The connection manager is created from environment settings at startup
    unless one is given. It is connected when the app starts and
    disconnected when it shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        connection = manager or ConnectionManager(get_settings())
        settings = connection.settings
        setup_logging(settings.log_level, settings.log_json)
        await connection.connect()
        app.state.connection = connection
        app.state.repository = build_repository(connection)
        try:
            yield
        finally:
            await connection.disconnect()

    app = FastAPI(
        title="Todo Store",
        description="Todo items persisted in MongoDB behind a guarded connection lifecycle.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    # Middleware is fixed at build time, before the lifespan loads the other
    # settings, so CORS_ALLOW_ORIGINS is read when create_app() runs.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=manager.settings.cors_allow_origins if manager else get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

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

    @app.exception_handler(TodoNotFoundError)
    async def not_found_handler(request: Request, exc: TodoNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Todo not found"})

    async def unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"error": "DatabaseUnavailable", "message": str(exc)},
        )

    for exc_class in (NotConnectedError, StoreConnectionError, PyMongoError):
        app.add_exception_handler(exc_class, unavailable_handler)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            A JSON object with the database connection state.
        """
        connection = getattr(request.app.state, "connection", None)
        state = connection.state.value if connection else "disconnected"
        return {"message": "Healthy", "database": state}

    app.include_router(todos_router.router)
    return app


app = create_app()
