"""Shared test fixtures for the hostlink test suite.

Provides one sample of every request variant, a recording canvas
surface, and mock collaborators for the dispatcher.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from hostlink.canvas.base import CanvasSurface
from hostlink.canvas.geometry import PanelFrame
from hostlink.domain.models import (
    AgentRequest,
    CameraClipRequest,
    CameraFacing,
    CameraSnapRequest,
    CanvasA2UICommand,
    CanvasA2UIRequest,
    CanvasEvalRequest,
    CanvasHideRequest,
    CanvasPlacement,
    CanvasShowRequest,
    CanvasSnapshotRequest,
    Capability,
    EnsurePermissionsRequest,
    NodeInvokeRequest,
    NodeListRequest,
    NotificationDelivery,
    NotificationPriority,
    NotifyRequest,
    RequestVariant,
    RPCStatusRequest,
    RunShellRequest,
    StatusRequest,
)


# ---------------------------------------------------------------------------
# Request Fixtures
# ---------------------------------------------------------------------------


def make_sample_requests() -> list[RequestVariant]:
    """One instance of every request variant, optional fields filled in."""
    return [
        StatusRequest(),
        RPCStatusRequest(),
        NotifyRequest(
            title="Build",
            body="done",
            sound=" Glass ",
            priority=NotificationPriority.TIME_SENSITIVE,
            delivery=NotificationDelivery.AUTO,
        ),
        EnsurePermissionsRequest(
            capabilities=[Capability.NOTIFICATIONS, Capability.SCREEN_RECORDING],
            interactive=True,
        ),
        RunShellRequest(
            command=["echo", "hi"],
            cwd="/tmp",
            env={"A": "1"},
            timeout_sec=5,
            needs_screen_recording=False,
        ),
        AgentRequest(message="hello", thinking="low", session="s1", deliver=True, to="+15555550123"),
        CanvasShowRequest(
            session="main",
            target="/index.html",
            placement=CanvasPlacement(x=10, y=20, width=400, height=500),
        ),
        CanvasHideRequest(session="main"),
        CanvasEvalRequest(session="main", script="1 + 1"),
        CanvasSnapshotRequest(session="main", out_path="/tmp/snap.png"),
        CanvasA2UIRequest(session="main", command=CanvasA2UICommand.PUSH_JSONL, jsonl='{"beginRendering":{}}'),
        NodeListRequest(),
        NodeInvokeRequest(node_id="node-1", command="ping", params_json='{"n": 1}'),
        CameraSnapRequest(facing=CameraFacing.FRONT, max_width=640, quality=0.5, out_path="/tmp/a.jpg"),
        CameraClipRequest(facing=CameraFacing.BACK, duration_ms=1000, include_audio=False, out_path="/tmp/a.mp4"),
    ]


@pytest.fixture
def sample_requests() -> list[RequestVariant]:
    return make_sample_requests()


# ---------------------------------------------------------------------------
# Canvas Fixtures
# ---------------------------------------------------------------------------


class RecordingSurface(CanvasSurface):
    """In-memory canvas surface that records every call."""

    def __init__(self, eval_result: str = "") -> None:
        self.calls: list[tuple] = []
        self.frames: dict[str, PanelFrame] = {}
        self.eval_result = eval_result
        self.png = b"\x89PNG\r\n\x1a\nfake"

    async def present(self, session_key: str, frame: PanelFrame) -> PanelFrame:
        self.calls.append(("present", session_key, frame))
        self.frames[session_key] = frame
        return frame

    async def dismiss(self, session_key: str) -> PanelFrame | None:
        self.calls.append(("dismiss", session_key))
        return self.frames.pop(session_key, None)

    async def load(self, session_key: str, url: str) -> None:
        self.calls.append(("load", session_key, url))

    async def eval(self, session_key: str, script: str) -> str:
        self.calls.append(("eval", session_key, script))
        return self.eval_result

    async def snapshot_png(self, session_key: str) -> bytes:
        self.calls.append(("snapshot", session_key))
        return self.png


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def short_socket_path(tmp_path: Path) -> Path:
    """A socket path well inside the AF_UNIX path length limit."""
    return tmp_path / "c.sock"


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_notifier() -> AsyncMock:
    mock = AsyncMock()
    mock.send.return_value = True
    return mock


@pytest.fixture
def mock_overlay() -> AsyncMock:
    return AsyncMock()
