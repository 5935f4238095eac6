"""
FastAPI application entry point for the club site backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clubsite.config import get_settings
from clubsite.dependencies import shutdown_dependencies
from clubsite.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
    RemoteOperationError,
)
from clubsite.routes import router

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: (404, "Not found"),
    DuplicateEmailError: (409, "Email already exists"),
    InvalidCredentialsError: (401, "Invalid credentials"),
    PermissionDeniedError: (403, "Permission denied"),
    RemoteOperationError: (502, "The operation failed. Please try again."),
}


def _error_handler(status_code: int, detail: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": detail})

    return handler


async def _value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    shutdown_dependencies()


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    app = FastAPI(title="Club Site Backend", version="0.1.0", lifespan=lifespan)
    for exc_type, (status_code, detail) in ERROR_STATUS.items():
        app.add_exception_handler(exc_type, _error_handler(status_code, detail))
    app.add_exception_handler(ValueError, _value_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("clubsite.app:app", host="0.0.0.0", port=8000)
