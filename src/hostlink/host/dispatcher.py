"""Request dispatcher.

Routes each decoded request to its handler under the host's gating
rules and always produces exactly one Response. Handler failures are
converted to failed responses here; nothing a handler raises escapes to
the connection task or to other in-flight requests.
"""

from __future__ import annotations

import asyncio
import json
import logging
import tempfile
import uuid
from pathlib import Path
from typing import assert_never

from hostlink.agent.base import AgentRPC
from hostlink.camera.base import CameraCapture
from hostlink.canvas.a2ui import A2UIPipeline
from hostlink.canvas.manager import CanvasManager
from hostlink.domain.models import (
    AgentRequest,
    CameraClipRequest,
    CameraSnapRequest,
    CanvasA2UICommand,
    CanvasA2UIRequest,
    CanvasEvalRequest,
    CanvasHideRequest,
    CanvasShowRequest,
    CanvasSnapshotRequest,
    Capability,
    EnsurePermissionsRequest,
    NodeInvokeRequest,
    NodeListRequest,
    NotificationDelivery,
    NotifyRequest,
    RequestVariant,
    Response,
    RPCStatusRequest,
    RunShellRequest,
    StatusRequest,
)
from hostlink.host.state import HostState
from hostlink.nodes.base import BridgeServer
from hostlink.notify.base import Notifier, OverlayPresenter
from hostlink.permissions.manager import PermissionManager
from hostlink.shell.executor import ShellExecutor

logger = logging.getLogger(__name__)

PAUSED = "paused"
CANVAS_DISABLED = "Canvas disabled by user"
CAMERA_DISABLED = "Camera disabled by user"


class Dispatcher:
    """Routes requests to the host's collaborators.

    Args:
        state: Paused flag and session store.
        notifier: System notification delivery.
        overlay: Overlay notification delivery.
        permissions: Capability grants.
        shell: Shell command execution.
        agent: Agent gateway client.
        canvas: Canvas session manager.
        a2ui: A2UI delivery for canvas sessions.
        bridge: Sub-node bridge.
        camera: Camera capture.
        canvas_enabled: Whether canvas requests are allowed.
        camera_enabled: Whether camera requests are allowed.
    """

    def __init__(
        self,
        state: HostState,
        notifier: Notifier,
        overlay: OverlayPresenter,
        permissions: PermissionManager,
        shell: ShellExecutor,
        agent: AgentRPC,
        canvas: CanvasManager,
        a2ui: A2UIPipeline,
        bridge: BridgeServer,
        camera: CameraCapture,
        canvas_enabled: bool = True,
        camera_enabled: bool = True,
    ) -> None:
        self._state = state
        self._notifier = notifier
        self._overlay = overlay
        self._permissions = permissions
        self._shell = shell
        self._agent = agent
        self._canvas = canvas
        self._a2ui = a2ui
        self._bridge = bridge
        self._camera = camera
        self.canvas_enabled = canvas_enabled
        self.camera_enabled = camera_enabled

    async def handle(self, request: RequestVariant) -> Response:
        """Produce the response for one request."""
        if self._state.paused and not isinstance(request, StatusRequest):
            logger.debug("Rejected %s while paused", request.type)
            return Response.failure(PAUSED)
        try:
            return await self._route(request)
        except Exception as e:
            logger.warning("%s request failed: %s", request.type, e)
            return Response.failure(str(e) or type(e).__name__)

    async def _route(self, request: RequestVariant) -> Response:
        match request:
            case StatusRequest():
                return self._status()
            case RPCStatusRequest():
                return await self._rpc_status()
            case NotifyRequest():
                return await self._notify(request)
            case EnsurePermissionsRequest():
                return await self._ensure_permissions(request)
            case RunShellRequest():
                return await self._run_shell(request)
            case AgentRequest():
                return await self._agent_send(request)
            case CanvasShowRequest():
                return await self._canvas_show(request)
            case CanvasHideRequest():
                return await self._canvas_hide(request)
            case CanvasEvalRequest():
                return await self._canvas_eval(request)
            case CanvasSnapshotRequest():
                return await self._canvas_snapshot(request)
            case CanvasA2UIRequest():
                return await self._canvas_a2ui(request)
            case NodeListRequest():
                return await self._node_list()
            case NodeInvokeRequest():
                return await self._node_invoke(request)
            case CameraSnapRequest():
                return await self._camera_snap(request)
            case CameraClipRequest():
                return await self._camera_clip(request)
            case _:
                assert_never(request)

    # -- Host ---------------------------------------------------------------

    def _status(self) -> Response:
        payload = {"paused": self._state.paused, "visibleSessions": self._state.visible_sessions()}
        return Response(ok=True, message="ready", payload=json.dumps(payload).encode("utf-8"))

    async def _rpc_status(self) -> Response:
        result = await self._agent.status()
        return Response(ok=result.ok, message=result.error)

    async def _notify(self, request: NotifyRequest) -> Response:
        sound = request.sound.strip() if request.sound is not None else None
        delivery = request.delivery or NotificationDelivery.SYSTEM

        if delivery is NotificationDelivery.OVERLAY:
            await self._overlay.present(request.title, request.body)
            return Response(ok=True)

        sent = await self._notifier.send(request.title, request.body, sound or None, request.priority)
        if sent:
            return Response(ok=True)
        if delivery is NotificationDelivery.AUTO:
            await self._overlay.present(request.title, request.body)
            return Response(ok=True, message="notification not authorized; used overlay")
        return Response.failure("notification not authorized")

    async def _ensure_permissions(self, request: EnsurePermissionsRequest) -> Response:
        statuses = await self._permissions.ensure(request.capabilities, request.interactive)
        missing = [cap.value for cap, granted in statuses.items() if not granted]
        if missing:
            return Response.failure(f"missing: {','.join(missing)}")
        return Response(ok=True, message="all granted")

    async def _run_shell(self, request: RunShellRequest) -> Response:
        if not request.command:
            return Response.failure("missing command")
        if request.needs_screen_recording:
            granted = await self._permissions.ensure([Capability.SCREEN_RECORDING], interactive=False)
            if not granted.get(Capability.SCREEN_RECORDING, False):
                return Response.failure("screen recording permission missing")
        return await self._shell.run(
            request.command, cwd=request.cwd, env=request.env, timeout=request.timeout_sec
        )

    async def _agent_send(self, request: AgentRequest) -> Response:
        text = request.message.strip()
        if not text:
            return Response.failure("message empty")
        result = await self._agent.send(
            text,
            thinking=request.thinking,
            session_key=request.session or "main",
            deliver=request.deliver,
            to=request.to,
        )
        if result.ok:
            return Response(ok=True, message=result.text or "sent")
        return Response.failure(result.error or "failed to send")

    # -- Canvas -------------------------------------------------------------

    async def _canvas_show(self, request: CanvasShowRequest) -> Response:
        if not self.canvas_enabled:
            return Response.failure(CANVAS_DISABLED)
        result = await self._canvas.show(request.session, request.target, request.placement)
        payload = result.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        return Response(ok=True, message=result.directory, payload=payload)

    async def _canvas_hide(self, request: CanvasHideRequest) -> Response:
        await self._canvas.hide(request.session)
        return Response(ok=True)

    async def _canvas_eval(self, request: CanvasEvalRequest) -> Response:
        if not self.canvas_enabled:
            return Response.failure(CANVAS_DISABLED)
        result = await self._canvas.eval(request.session, request.script)
        return Response(ok=True, payload=result.encode("utf-8"))

    async def _canvas_snapshot(self, request: CanvasSnapshotRequest) -> Response:
        if not self.canvas_enabled:
            return Response.failure(CANVAS_DISABLED)
        path = await self._canvas.snapshot(request.session, request.out_path)
        return Response(ok=True, message=path)

    async def _canvas_a2ui(self, request: CanvasA2UIRequest) -> Response:
        if not self.canvas_enabled:
            return Response.failure(CANVAS_DISABLED)
        match request.command:
            case CanvasA2UICommand.PUSH_JSONL:
                return await self._a2ui.push(request.session, request.jsonl)
            case CanvasA2UICommand.RESET:
                return await self._a2ui.reset(request.session)
            case _:
                assert_never(request.command)

    # -- Nodes --------------------------------------------------------------

    async def _node_list(self) -> Response:
        ids = await self._bridge.connected_node_ids()
        payload = json.dumps({"connectedNodeIds": ids}, indent=2)
        return Response(ok=True, payload=payload.encode("utf-8"))

    async def _node_invoke(self, request: NodeInvokeRequest) -> Response:
        result = await self._bridge.invoke(request.node_id, request.command, request.params_json)
        if result.ok:
            return Response(ok=True, payload=(result.payload_json or "").encode("utf-8"))
        message = result.error.message if result.error is not None else None
        return Response.failure(message or "node invoke failed")

    # -- Camera -------------------------------------------------------------

    async def _camera_snap(self, request: CameraSnapRequest) -> Response:
        if not self.camera_enabled:
            return Response.failure(CAMERA_DISABLED)
        data = await self._camera.snap(request.facing, request.max_width, request.quality)
        if request.out_path and request.out_path.strip():
            path = Path(request.out_path).expanduser()
        else:
            path = Path(tempfile.gettempdir()) / f"hostlink-camera-snap-{uuid.uuid4()}.jpg"
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _write_atomic, path, data)
        return Response(ok=True, message=str(path))

    async def _camera_clip(self, request: CameraClipRequest) -> Response:
        if not self.camera_enabled:
            return Response.failure(CAMERA_DISABLED)
        path = await self._camera.clip(
            request.facing, request.duration_ms, request.include_audio, request.out_path
        )
        return Response(ok=True, message=path)


def _write_atomic(path: Path, data: bytes) -> None:
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_bytes(data)
    tmp.replace(path)
