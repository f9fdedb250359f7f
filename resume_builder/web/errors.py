"""API error types and exception handlers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class APIError(Exception):
    """Application-level API error with status/code mapping."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class UnauthenticatedError(APIError):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(401, "UNAUTHORIZED", message)


class ResumeNotFoundError(APIError):
    """Raised for absent documents and for documents owned by someone else."""

    def __init__(self, resume_id: str) -> None:
        super().__init__(404, "RESUME_NOT_FOUND", f"Resume '{resume_id}' not found")


class ResumeValidationError(APIError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(400, "VALIDATION_ERROR", message, details)


class UnsupportedMediaTypeError(APIError):
    def __init__(self, mime_type: str, allowed: Any) -> None:
        super().__init__(
            415,
            "UNSUPPORTED_MEDIA_TYPE",
            "Only .jpg, .jpeg and .png files are allowed",
            {"mime_type": mime_type, "allowed": sorted(allowed)},
        )


class UploadTooLargeError(APIError):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(
            422,
            "UPLOAD_TOO_LARGE",
            "Uploaded file exceeds size limit",
            {"max_upload_bytes": max_bytes},
        )


class StaleWriteError(APIError):
    def __init__(self, resume_id: str, expected_version: int) -> None:
        super().__init__(
            409,
            "STALE_WRITE",
            "Resume was modified by another request",
            {"resume_id": resume_id, "expected_version": expected_version},
        )


class StoreUnavailableError(APIError):
    """Storage backend failure. The underlying exception is never exposed."""

    def __init__(self, message: str = "Storage is temporarily unavailable") -> None:
        super().__init__(503, "STORE_UNAVAILABLE", message)


class RateLimitedError(APIError):
    def __init__(self, limit_per_minute: int) -> None:
        super().__init__(
            429,
            "RATE_LIMITED",
            "Request rate limit exceeded",
            {"limit_per_minute": limit_per_minute},
        )


async def api_error_handler(_: Request, exc: APIError) -> JSONResponse:
    """Render contract-compliant error response."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Normalize FastAPI validation errors to API contract shape."""
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": "BAD_REQUEST",
                "message": "Invalid request payload",
                "details": {"errors": jsonable_encoder(exc.errors())},
            }
        },
    )
