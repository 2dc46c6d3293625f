"""Domain models for hostlink.

This package contains the request/response data model and the error
taxonomy shared by the client transport and the host. All models use
Pydantic v2 for validation and serialization.
"""

from hostlink.domain.models import (
    CanvasPlacement,
    CanvasShowResult,
    Request,
    RequestVariant,
    Response,
)

__all__ = [
    "CanvasPlacement",
    "CanvasShowResult",
    "Request",
    "RequestVariant",
    "Response",
]
