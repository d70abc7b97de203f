import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from mockwarp.config import settings
from mockwarp.engine.compiler import compile_mock
from mockwarp.engine.context import build_request_context
from mockwarp.engine.dispatcher import MockResponse
from mockwarp.engine.exceptions import MockEngineError
from mockwarp.engine.metrics import (
    observe_compile_latency,
    record_mock_error,
    record_request,
    record_response,
)
from mockwarp.engine.resolver import resolve_mock_dir, select_mock_file
from mockwarp.logging import logger, setup_logging

MOCK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Handles application startup and shutdown events.

    Applies the configured log level and reports where mocks are served from.
    """
    setup_logging(settings.log_level)
    logger.info("Starting mockwarp")
    logger.info(f"Mocks directory: {os.path.abspath(settings.mocks_dir)}")
    if not os.path.isdir(settings.mocks_dir):
        logger.warning(f"Mocks directory {settings.mocks_dir} does not exist, every request will get the default 404")
    yield
    logger.info("Shutting down mockwarp")


app = FastAPI(
    title="mockwarp",
    lifespan=lifespan,
)


@app.exception_handler(MockEngineError)
async def mock_engine_exception_handler(request: Request, exc: MockEngineError) -> JSONResponse:
    """
    Turns a broken mock definition into a 500 for this request only.

    Covers malformed status lines, template syntax errors and unreadable mock
    files.
    """
    error_type = type(exc).__name__
    logger.error(f"Mock error for URL: {request.url} - {error_type}: {exc}")
    record_mock_error(error_type)
    return JSONResponse(status_code=500, content={"error": error_type, "detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handles all unhandled exceptions that occur within the application.

    This ensures that the application returns a consistent JSON error response
    for unexpected errors, rather than crashing.
    """
    logger.error(
        f"Unhandled exception for URL: {request.url} - {str(exc)}", exc_info=True
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get(f"{settings.admin_prefix}/metrics")
async def metrics() -> Response:
    """
    Exposes Prometheus metrics for scraping.
    """
    return PlainTextResponse(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


@app.get(f"{settings.admin_prefix}/health")
async def health() -> Dict[str, Any]:
    """
    Reports that the service is up and whether the mocks directory is present.
    """
    status = {
        "status": "ok",
        "mocks_dir": settings.mocks_dir,
        "mocks_dir_exists": os.path.isdir(settings.mocks_dir),
    }
    logger.info(f"Health check: {status}")
    return status


@app.api_route("/{full_path:path}", methods=MOCK_METHODS)
async def serve_mock(request: Request) -> Response:
    """
    Answers any request from the mock tree.

    The request path is resolved to a mock-group directory (with wildcard
    fallback), the `<METHOD>.mock` file inside it is compiled against the
    request, and the result is sent after its Response-Delay. A missing mock
    file yields the default 404 JSON response. HEAD is answered from
    `GET.mock` with the headers only.
    """
    start_time = time.time()
    context = await build_request_context(request)
    record_request(context.method)
    logger.info(f"Processing request: {context.method} {context.path}")

    mock_dir = await run_in_threadpool(resolve_mock_dir, context.path, settings.mocks_dir)
    head_only = context.method == "HEAD"
    mock_method = "GET" if head_only else context.method
    mock_file = select_mock_file(mock_dir, mock_method, settings.mock_file_extension)
    compiled = await compile_mock(mock_file, context)

    observe_compile_latency(time.time() - start_time)
    record_response(compiled.descriptor.status)
    return MockResponse(
        compiled, default_content_type=settings.default_content_type, head_only=head_only
    )


def run() -> None:
    """Starts the server on the configured host and port."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
