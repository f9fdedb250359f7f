"""Dependency providers for v1 API."""

from __future__ import annotations

from typing import Optional

from fastapi import Request

from ...auth import Principal
from ...errors import UnauthenticatedError
from ...service import ResumeLifecycleService


def get_service(request: Request) -> ResumeLifecycleService:
    """Access shared lifecycle service from app state."""
    return request.app.state.resume_service


def get_principal(request: Request) -> Principal:
    """Return the principal resolved by auth middleware."""
    principal: Optional[Principal] = getattr(request.state, "principal", None)
    if principal is None:
        raise UnauthenticatedError()
    return principal


def get_public_base_url(request: Request) -> str:
    """Configured public base URL, else the URL the request came in on."""
    configured = getattr(request.app.state, "public_base_url", "")
    return configured or str(request.base_url).rstrip("/")
