"""Tests for the canvas session manager."""

from __future__ import annotations

from pathlib import Path

import pytest

from hostlink.canvas.geometry import DEFAULT_PANEL_HEIGHT, DEFAULT_PANEL_WIDTH, GeometryStore, PanelFrame
from hostlink.canvas.manager import CANVAS_SCHEME, CanvasManager, resolve_target
from hostlink.domain.errors import CollaboratorError
from hostlink.domain.models import CanvasPlacement, CanvasShowStatus
from hostlink.host.state import HostState


@pytest.fixture
def state() -> HostState:
    return HostState()


@pytest.fixture
def geometry(tmp_path: Path) -> GeometryStore:
    return GeometryStore(tmp_path / "geometry.yaml")


@pytest.fixture
def manager(tmp_path: Path, state: HostState, geometry: GeometryStore, surface) -> CanvasManager:
    return CanvasManager(tmp_path / "canvas", state, geometry, surface)


class TestResolveTarget:
    def test_web(self) -> None:
        assert resolve_target(" https://example.com/a ", "main") == (CanvasShowStatus.WEB, "https://example.com/a")

    def test_file_url(self) -> None:
        assert resolve_target("file:///tmp/x.html", "main") == (CanvasShowStatus.FILE, "file:///tmp/x.html")

    def test_existing_absolute_file(self, tmp_path: Path) -> None:
        page = tmp_path / "page.html"
        page.write_text("<html></html>")
        assert resolve_target(str(page), "main") == (CanvasShowStatus.FILE, page.as_uri())

    def test_canvas_route(self) -> None:
        assert resolve_target("/", "main") == (CanvasShowStatus.SHOWN, f"{CANVAS_SCHEME}://main/")
        assert resolve_target("/docs/a b.html", "s/1") == (
            CanvasShowStatus.SHOWN,
            f"{CANVAS_SCHEME}://s_1/docs/a%20b.html",
        )


class TestCanvasManager:
    @pytest.mark.asyncio
    async def test_show_uses_default_frame_and_remembers_it(
        self, manager: CanvasManager, geometry: GeometryStore, state: HostState, surface
    ) -> None:
        result = await manager.show("main")

        assert result.status is CanvasShowStatus.SHOWN
        assert result.url is None
        assert Path(result.directory).is_dir()
        assert surface.calls == [("present", "main", PanelFrame(0, 0, DEFAULT_PANEL_WIDTH, DEFAULT_PANEL_HEIGHT))]
        assert geometry.load("main") == PanelFrame(0, 0, DEFAULT_PANEL_WIDTH, DEFAULT_PANEL_HEIGHT)
        assert state.visible_sessions() == ["main"]

    @pytest.mark.asyncio
    async def test_placement_overrides_remembered_frame(
        self, manager: CanvasManager, geometry: GeometryStore, surface
    ) -> None:
        geometry.save("main", PanelFrame(5, 6, 700, 800))
        await manager.show("main", placement=CanvasPlacement(x=50, height=100))
        _, _, frame = surface.calls[0]
        assert frame == PanelFrame(50, 6, 700, 360)

    @pytest.mark.asyncio
    async def test_placement_survives_show_without_placement(
        self, manager: CanvasManager, geometry: GeometryStore, surface
    ) -> None:
        await manager.show("main", placement=CanvasPlacement(x=50, y=60, width=500, height=500))
        await manager.show("main", "/")
        frames = [call[2] for call in surface.calls if call[0] == "present"]
        assert frames == [PanelFrame(50, 60, 500, 500), PanelFrame(50, 60, 500, 500)]
        assert geometry.load("main") == PanelFrame(50, 60, 500, 500)

    @pytest.mark.asyncio
    async def test_show_with_target_loads_url(self, manager: CanvasManager, state: HostState, surface) -> None:
        result = await manager.show("main", "https://example.com")
        assert result.status is CanvasShowStatus.WEB
        assert result.url == "https://example.com"
        assert surface.calls[-1] == ("load", "main", "https://example.com")
        assert state.session("main").target == "https://example.com"

    @pytest.mark.asyncio
    async def test_hide_remembers_last_frame(
        self, manager: CanvasManager, geometry: GeometryStore, state: HostState, surface
    ) -> None:
        await manager.show("main", placement=CanvasPlacement(x=1, y=2, width=400, height=400))
        await manager.hide("main")
        assert state.visible_sessions() == []
        assert geometry.load("main") == PanelFrame(1, 2, 400, 400)

    @pytest.mark.asyncio
    async def test_snapshot_writes_png(self, manager: CanvasManager, surface, tmp_path: Path) -> None:
        out = tmp_path / "shot.png"
        assert await manager.snapshot("main", str(out)) == str(out)
        assert out.read_bytes() == surface.png

    @pytest.mark.asyncio
    async def test_eval(self, manager: CanvasManager, surface) -> None:
        surface.eval_result = "42"
        assert await manager.eval("main", "6 * 7") == "42"

    @pytest.mark.asyncio
    async def test_without_surface(self, tmp_path: Path, state: HostState, geometry: GeometryStore) -> None:
        manager = CanvasManager(tmp_path / "canvas", state, geometry)
        assert not manager.has_surface
        with pytest.raises(CollaboratorError, match="no canvas surface"):
            await manager.show("main")
        await manager.hide("main")
        assert state.visible_sessions() == []
