"""FastAPI app entrypoint for Resume Builder web APIs."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from ..contracts import (
    DEFAULT_ALLOWED_IMAGE_MIME_TYPES,
    DEFAULT_ASSET_MOUNT_PATH,
    DEFAULT_MAX_UPLOAD_BYTES,
    DEFAULT_ORPHAN_GRACE_SECONDS,
)
from .api.v1.router import api_v1_router
from .asset_storage import LocalAssetStorageProvider
from .auth import (
    HeaderPrincipalResolver,
    InMemoryRateLimiter,
    PrincipalResolver,
    StaticTokenPrincipalResolver,
    parse_token_map,
)
from .document_store import DocumentStore, InMemoryDocumentStore
from .errors import APIError, RateLimitedError, api_error_handler, validation_error_handler
from .janitor import AssetJanitor
from .service import ResumeLifecycleService
from .sqlite_store import SQLiteDocumentStore

logger = logging.getLogger("resume_builder.web.api")


def _api_error_response(err: APIError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_flag(name: str, default: str = "off") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "on", "true", "yes"}


def _build_document_store() -> DocumentStore:
    backend = os.getenv("RESUME_BUILDER_STORE_BACKEND", "memory").strip().lower()
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "sqlite":
        db_path = Path(os.getenv("RESUME_BUILDER_DB_PATH", "workspace/resume_builder.db")).resolve()
        return SQLiteDocumentStore(db_path=db_path)
    raise ValueError(f"Unknown RESUME_BUILDER_STORE_BACKEND: {backend!r}")


def _build_principal_resolver(auth_mode: str) -> PrincipalResolver:
    if auth_mode == "token":
        return StaticTokenPrincipalResolver(parse_token_map(os.getenv("RESUME_BUILDER_API_TOKENS", "")))
    if auth_mode == "header":
        return HeaderPrincipalResolver()
    raise ValueError(f"Unknown RESUME_BUILDER_AUTH_MODE: {auth_mode!r}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    auth_mode = os.getenv("RESUME_BUILDER_AUTH_MODE", "header").strip().lower()
    api_tokens = os.getenv("RESUME_BUILDER_API_TOKENS", "").strip()
    max_requests_per_minute = _env_int("RESUME_BUILDER_RATE_LIMIT_RPM", 300)
    max_upload_bytes = _env_int("RESUME_BUILDER_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    sweep_interval_seconds = _env_int("RESUME_BUILDER_ORPHAN_SWEEP_INTERVAL_SECONDS", 0)
    orphan_grace_seconds = _env_int("RESUME_BUILDER_ORPHAN_GRACE_SECONDS", DEFAULT_ORPHAN_GRACE_SECONDS)
    optimistic_concurrency = _env_flag("RESUME_BUILDER_OPTIMISTIC_CONCURRENCY")
    public_base_url = os.getenv("RESUME_BUILDER_PUBLIC_BASE_URL", "").strip().rstrip("/")
    mount_path = os.getenv("RESUME_BUILDER_ASSET_MOUNT_PATH", DEFAULT_ASSET_MOUNT_PATH).strip().strip("/")
    allowed_image_mime_types = [
        item.strip()
        for item in os.getenv(
            "RESUME_BUILDER_ALLOWED_IMAGE_MIME_TYPES",
            ",".join(DEFAULT_ALLOWED_IMAGE_MIME_TYPES),
        ).split(",")
        if item.strip()
    ]

    asset_root = Path(os.getenv("RESUME_BUILDER_ASSET_ROOT", "workspace/uploads")).resolve()
    asset_store = LocalAssetStorageProvider(asset_root, mount_path=mount_path)
    document_store = _build_document_store()
    service = ResumeLifecycleService(
        document_store=document_store,
        asset_store=asset_store,
        allowed_mime_types=allowed_image_mime_types,
        max_upload_bytes=max_upload_bytes,
        optimistic_concurrency=optimistic_concurrency,
    )
    janitor = AssetJanitor(
        asset_store=asset_store,
        document_store=document_store,
        grace_seconds=orphan_grace_seconds,
        interval_seconds=sweep_interval_seconds,
    )
    resolver = _build_principal_resolver(auth_mode)
    rate_limiter = InMemoryRateLimiter(max_requests_per_minute=max_requests_per_minute)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await service.start()
        await janitor.start()
        try:
            yield
        finally:
            await janitor.stop()
            await service.stop()

    app = FastAPI(title="Resume Builder API", version="0.1.0", lifespan=lifespan)
    app.state.resume_service = service
    app.state.asset_janitor = janitor
    app.state.public_base_url = public_base_url
    app.include_router(api_v1_router)
    app.mount(f"/{mount_path}", StaticFiles(directory=asset_root, check_dir=False), name="assets")

    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        if not request.url.path.startswith("/api/v1"):
            return await call_next(request)

        if auth_mode == "token":
            if not api_tokens:
                return _api_error_response(
                    APIError(500, "SERVER_MISCONFIGURED", "Token auth is enabled but no tokens are configured")
                )
            credential = request.headers.get("Authorization") or ""
        else:
            credential = request.headers.get("X-User-ID") or ""

        try:
            principal = resolver.authenticate(credential)
        except APIError as exc:
            return _api_error_response(exc)

        if not rate_limiter.allow(principal.id):
            return _api_error_response(RateLimitedError(rate_limiter.limit))

        request.state.principal = principal
        return await call_next(request)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (perf_counter() - start) * 1000
            _log_request(request, 500, duration_ms)
            raise

        duration_ms = (perf_counter() - start) * 1000
        _log_request(request, response.status_code, duration_ms)
        return response

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict:
        return {"status": "ok"}

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    return app


def _log_request(request: Request, status_code: int, duration_ms: float) -> None:
    path_params = request.scope.get("path_params", {})
    principal = getattr(request.state, "principal", None)
    logger.info(
        "api_request method=%s path=%s status=%s duration_ms=%.2f resume_id=%s principal_id=%s",
        request.method,
        request.url.path,
        status_code,
        duration_ms,
        path_params.get("resume_id", "-"),
        principal.id if principal else "-",
    )


app = create_app()


def main() -> None:
    """Run development API server."""
    import uvicorn

    uvicorn.run(
        "resume_builder.web.app:app",
        host=os.getenv("RESUME_BUILDER_HOST", "127.0.0.1"),
        port=_env_int("RESUME_BUILDER_PORT", 8000),
    )
