"""JSON message codec for the control socket.

Each direction carries exactly one JSON value with no length prefix and
no delimiter. The sender half-closes its write side when done, so a
reader decides completeness solely by whether the bytes buffered so far
parse into a full message.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from hostlink.domain.models import Request, RequestVariant, Response

logger = logging.getLogger(__name__)

_request_adapter: TypeAdapter[RequestVariant] = TypeAdapter(Request)


def encode_request(request: RequestVariant) -> bytes:
    """Serialize a request variant to UTF-8 JSON bytes."""
    return request.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def decode_request(data: bytes) -> RequestVariant:
    """Decode a complete request.

    Raises:
        ValidationError: If the bytes are not a known request variant.
    """
    return _request_adapter.validate_json(data)


def encode_response(response: Response) -> bytes:
    """Serialize a response to UTF-8 JSON bytes."""
    return response.model_dump_json(exclude_none=True).encode("utf-8")


def decode_response(data: bytes) -> Response | None:
    """Try to decode one complete response from the bytes buffered so far.

    Returns None when the buffer does not (yet) hold a full response:
    truncated JSON, a multi-byte character split across reads, or a value
    that is not a response. A failed decode is never an error by itself;
    only the caller knows whether more bytes can still arrive.
    """
    if not data:
        return None
    try:
        return Response.model_validate_json(data)
    except (ValidationError, ValueError):
        return None
