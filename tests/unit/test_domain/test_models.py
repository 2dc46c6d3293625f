"""Tests for request and response models."""

from __future__ import annotations

import base64
import json
from typing import get_args

import pytest
from pydantic import TypeAdapter, ValidationError

from hostlink.domain.models import (
    CanvasPlacement,
    CanvasShowResult,
    CanvasShowStatus,
    NodeInvokeRequest,
    Request,
    RequestVariant,
    Response,
    RunShellRequest,
    StatusRequest,
)

adapter = TypeAdapter(Request)


class TestRequestUnion:
    """The closed set of request variants."""

    def test_every_variant_has_a_distinct_type_tag(self) -> None:
        tags = [cls.model_fields["type"].default for cls in get_args(RequestVariant)]
        assert len(tags) == len(set(tags)) == 15

    def test_discriminates_on_type(self) -> None:
        request = adapter.validate_python({"type": "runShell", "command": ["ls"], "timeoutSec": 3})
        assert isinstance(request, RunShellRequest)
        assert request.timeout_sec == 3
        assert request.needs_screen_recording is False

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "reboot"})

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "status", "extra": 1})

    def test_params_json_alias(self) -> None:
        request = adapter.validate_python(
            {"type": "nodeInvoke", "nodeId": "n1", "command": "ping", "paramsJSON": "{}"}
        )
        assert isinstance(request, NodeInvokeRequest)
        assert request.params_json == "{}"
        dumped = request.model_dump(by_alias=True)
        assert "paramsJSON" in dumped
        assert "nodeId" in dumped

    def test_camel_case_on_the_wire(self, sample_requests) -> None:
        for request in sample_requests:
            dumped = request.model_dump(by_alias=True, exclude_none=True)
            assert all("_" not in key for key in dumped), dumped

    def test_requests_are_immutable(self) -> None:
        request = StatusRequest()
        with pytest.raises(ValidationError):
            request.type = "notify"  # type: ignore[misc]

    def test_quality_bounds(self) -> None:
        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "cameraSnap", "quality": 1.5})


class TestCanvasPlacement:
    def test_empty(self) -> None:
        assert CanvasPlacement().is_empty
        assert not CanvasPlacement(x=0).is_empty

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValidationError):
            CanvasPlacement(width=0)


class TestResponse:
    def test_payload_is_base64_on_the_wire(self) -> None:
        response = Response(ok=True, payload=b"\x00\xffhello")
        wire = json.loads(response.model_dump_json())
        assert wire["payload"] == base64.b64encode(b"\x00\xffhello").decode("ascii")

    def test_payload_decoded_from_base64(self) -> None:
        response = Response.model_validate({"ok": True, "payload": base64.b64encode(b"abc").decode()})
        assert response.payload == b"abc"
        assert response.payload_text == "abc"

    def test_invalid_base64_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Response.model_validate({"ok": True, "payload": "not base64!"})

    def test_failure(self) -> None:
        response = Response.failure("paused")
        assert response.ok is False
        assert response.message == "paused"
        assert response.payload is None
        assert response.payload_text is None

    def test_unknown_fields_ignored(self) -> None:
        response = Response.model_validate({"ok": True, "extra": 1})
        assert response.ok is True


class TestCanvasShowResult:
    def test_serializes_status_value(self) -> None:
        result = CanvasShowResult(directory="/d", status=CanvasShowStatus.WEB, url="https://x")
        data = json.loads(result.model_dump_json(by_alias=True, exclude_none=True))
        assert data == {"directory": "/d", "url": "https://x", "status": "web"}
