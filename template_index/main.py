"""
Template Index Main Application
FastAPI web server over a directory of JSON templates
"""
import time
from pathlib import Path
from typing import Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from template_index.api.v1 import api_router
from template_index.core import config
from template_index.core.errors import TemplateError
from template_index.modules.index_store import TemplateIndex
from template_index.utils.logger import setup_logger
from template_index.utils.response_models import ErrorResponse

logger = setup_logger(__name__)

_HTTP_ERROR_CODES = {
    404: "not_found",
    405: "method_not_allowed",
}


def create_app(
    root: Optional[Path] = None,
    excluded_dirs: Optional[Iterable[str]] = None,
    excluded_files: Optional[Iterable[str]] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        root: templates root (defaults to TEMPLATES_ROOT)
        excluded_dirs: directory names to skip (defaults to EXCLUDED_DIRS)
        excluded_files: file names to skip (defaults to EXCLUDED_FILES)
    """
    app = FastAPI(title="Template Index API")

    app.state.template_index = TemplateIndex(
        root=root if root is not None else config.TEMPLATES_ROOT,
        excluded_dirs=excluded_dirs if excluded_dirs is not None else config.EXCLUDED_DIRS,
        excluded_files=excluded_files if excluded_files is not None else config.EXCLUDED_FILES,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    @app.exception_handler(TemplateError)
    async def template_error_handler(request: Request, exc: TemplateError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
        body = {"error": code}
        if exc.status_code != 404:
            body["message"] = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_request", "message": "Request validation failed", "details": {"errors": jsonable_encoder(exc.errors())}},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        body = ErrorResponse(error="internal_error", message="Internal server error")
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

    app.include_router(api_router)

    logger.info(f"Template index root: {app.state.template_index.root}")
    return app


app = create_app()


def run():
    """Console entry point"""
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
