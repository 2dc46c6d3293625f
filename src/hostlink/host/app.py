"""Host process wiring.

Builds the collaborators, dispatcher and control server from settings
and runs them until the process is told to stop. ``SIGUSR1`` pauses the
host and ``SIGUSR2`` resumes it.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from hostlink.agent.base import AgentRPC
from hostlink.agent.http_rpc import HttpAgentRPC
from hostlink.camera.base import CameraCapture
from hostlink.canvas.a2ui import A2UIPipeline
from hostlink.canvas.base import CanvasSurface
from hostlink.canvas.geometry import GeometryStore
from hostlink.canvas.manager import CanvasManager
from hostlink.config.settings import Settings
from hostlink.host.dispatcher import Dispatcher
from hostlink.host.state import HostState
from hostlink.nodes.base import BridgeServer
from hostlink.nodes.http_bridge import HttpBridgeClient
from hostlink.notify.desktop import DesktopNotifier, LogOverlayPresenter
from hostlink.permissions.manager import StaticPermissionManager
from hostlink.shell.executor import SubprocessShellExecutor
from hostlink.transport.server import ControlServer

logger = logging.getLogger(__name__)


def _default_camera(settings: Settings) -> CameraCapture:
    from hostlink.camera.webcam import WebcamCapture

    cam = settings.camera
    return WebcamCapture(
        device_index=cam.device_index,
        back_device_index=cam.back_device_index,
        default_clip_ms=cam.default_clip_ms,
        max_clip_ms=cam.max_clip_ms,
        default_quality=cam.default_quality,
    )


class HostApp:
    """The hostlink host: one event loop, one control socket.

    Collaborators not passed in are built from ``settings``. No canvas
    surface ships with hostlink, so canvas requests fail with a
    descriptive error unless one is supplied.
    """

    def __init__(
        self,
        settings: Settings,
        surface: CanvasSurface | None = None,
        agent: AgentRPC | None = None,
        bridge: BridgeServer | None = None,
        camera: CameraCapture | None = None,
    ) -> None:
        self._settings = settings
        host = settings.host

        self.state = HostState(paused=host.start_paused)
        self._agent = agent or HttpAgentRPC(base_url=host.agent_base_url, timeout=host.http_timeout)
        self._bridge = bridge or HttpBridgeClient(base_url=host.bridge_base_url, timeout=host.http_timeout)

        self.canvas = CanvasManager(
            root=host.canvas_root,
            state=self.state,
            geometry=GeometryStore(host.geometry_file),
            surface=surface,
        )
        self.dispatcher = Dispatcher(
            state=self.state,
            notifier=DesktopNotifier(command=host.notify_command),
            overlay=LogOverlayPresenter(),
            permissions=StaticPermissionManager(host.granted_capabilities),
            shell=SubprocessShellExecutor(default_timeout=settings.socket.default_timeout),
            agent=self._agent,
            canvas=self.canvas,
            a2ui=A2UIPipeline(
                self.canvas,
                ready_timeout=settings.a2ui.ready_timeout,
                poll_interval=settings.a2ui.poll_interval,
            ),
            bridge=self._bridge,
            camera=camera or _default_camera(settings),
            canvas_enabled=host.canvas_enabled,
            camera_enabled=host.camera_enabled,
        )
        self.server = ControlServer(
            settings.socket.resolved_path,
            self.dispatcher.handle,
            max_request_bytes=settings.socket.max_request_bytes,
        )
        self._stop = asyncio.Event()

    def request_stop(self) -> None:
        self._stop.set()

    async def run(self) -> None:
        """Serve until SIGINT/SIGTERM (or ``request_stop``)."""
        # Handlers and signal callbacks all run on this thread
        self.state.bind()
        loop = asyncio.get_running_loop()
        self._install_signal_handlers(loop)

        await self.server.start()
        logger.info("hostlink host ready (paused=%s)", self.state.paused)
        try:
            await self._stop.wait()
        finally:
            logger.info("Shutting down")
            await self.server.stop()
            await self._agent.aclose()
            await self._bridge.aclose()
            self._remove_signal_handlers(loop)

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_stop)
        loop.add_signal_handler(signal.SIGUSR1, self.state.set_paused, True)
        loop.add_signal_handler(signal.SIGUSR2, self.state.set_paused, False)

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGUSR1, signal.SIGUSR2):
            loop.remove_signal_handler(sig)
