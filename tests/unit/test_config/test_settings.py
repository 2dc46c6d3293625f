"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from hostlink.config.settings import A2UIConfig, CameraConfig, Settings, SocketConfig, load_settings
from hostlink.domain.models import Capability


class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.socket.default_timeout == 10.0
        assert settings.socket.shell_timeout_cap == 300.0
        assert settings.host.canvas_enabled is True
        assert settings.host.start_paused is False
        assert settings.host.granted_capabilities == [Capability.NOTIFICATIONS]

    def test_a2ui_defaults(self) -> None:
        config = A2UIConfig()
        assert config.ready_timeout == 2.0
        assert config.poll_interval == 0.06

    def test_camera_defaults(self) -> None:
        config = CameraConfig()
        assert config.default_clip_ms == 3000
        assert config.max_clip_ms == 60_000
        assert config.back_device_index is None

    def test_socket_path_expanded(self) -> None:
        config = SocketConfig(path="~/x/control.sock")
        assert config.resolved_path == Path.home() / "x" / "control.sock"

    def test_rejects_invalid_values(self) -> None:
        with pytest.raises(ValidationError):
            SocketConfig(default_timeout=0)

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.socket.default_timeout == 10.0

    def test_load_settings_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "hostlink.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "socket": {"path": "/tmp/h.sock", "default_timeout": 3},
                    "host": {"canvas_enabled": False, "granted_capabilities": ["camera", "microphone"]},
                    "logging": {"level": "DEBUG"},
                }
            )
        )
        settings = load_settings(path)
        assert settings.socket.path == "/tmp/h.sock"
        assert settings.socket.default_timeout == 3.0
        assert settings.host.canvas_enabled is False
        assert settings.host.granted_capabilities == [Capability.CAMERA, Capability.MICROPHONE]
        assert settings.logging.level == "DEBUG"

    def test_environment_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOSTLINK_SOCKET__DEFAULT_TIMEOUT", "4.5")
        monkeypatch.setenv("HOSTLINK_HOST__CAMERA_ENABLED", "false")
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.socket.default_timeout == 4.5
        assert settings.host.camera_enabled is False

    def test_environment_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "hostlink.yaml"
        path.write_text(yaml.safe_dump({"socket": {"path": "/tmp/from-yaml.sock", "default_timeout": 3}}))
        monkeypatch.setenv("HOSTLINK_SOCKET__PATH", "/tmp/from-env.sock")

        settings = load_settings(path)

        assert settings.socket.path == "/tmp/from-env.sock"
        assert settings.socket.default_timeout == 3.0

    def test_environment_overrides_shipped_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        shipped = Path(__file__).resolve().parents[3] / "config" / "hostlink.yaml"
        monkeypatch.setenv("HOSTLINK_SOCKET__PATH", "/tmp/x.sock")
        monkeypatch.setenv("HOSTLINK_A2UI__READY_TIMEOUT", "5")

        settings = load_settings(shipped)

        assert settings.socket.path == "/tmp/x.sock"
        assert settings.a2ui.ready_timeout == 5.0
        assert settings.host.agent_base_url == "http://127.0.0.1:18789"
