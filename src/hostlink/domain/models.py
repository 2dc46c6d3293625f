"""Core domain models for the hostlink control plane.

These models represent the values that cross the control socket: the
closed set of request variants a client may send, the uniform response
the host sends back, and the small value objects carried inside them
(canvas placement, canvas show results).
"""

from __future__ import annotations

import base64
import binascii
import enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class NotificationPriority(str, enum.Enum):
    """How insistently a notification should be presented."""

    PASSIVE = "passive"
    ACTIVE = "active"
    TIME_SENSITIVE = "timeSensitive"


class NotificationDelivery(str, enum.Enum):
    """Where a notification is delivered."""

    SYSTEM = "system"  # Desktop notification service
    OVERLAY = "overlay"  # Host-drawn overlay
    AUTO = "auto"  # System first, overlay if the system refuses


class Capability(str, enum.Enum):
    """A host capability that may require a user grant."""

    NOTIFICATIONS = "notifications"
    ACCESSIBILITY = "accessibility"
    SCREEN_RECORDING = "screenRecording"
    MICROPHONE = "microphone"
    SPEECH_RECOGNITION = "speechRecognition"
    CAMERA = "camera"


class CameraFacing(str, enum.Enum):
    FRONT = "front"
    BACK = "back"


class CanvasA2UICommand(str, enum.Enum):
    RESET = "reset"
    PUSH_JSONL = "pushJSONL"


class CanvasShowStatus(str, enum.Enum):
    """What kind of target a canvas show resolved to."""

    SHOWN = "shown"  # Canvas route inside the session directory
    WEB = "web"  # http(s) URL
    FILE = "file"  # Existing local file


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    """Base for everything on the wire: camelCase aliases, immutable."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class CanvasPlacement(_WireModel):
    """Requested panel geometry.

    Every field is independently optional. Absent fields keep the
    remembered value, present fields replace it.
    """

    x: float | None = Field(default=None, description="Screen x of the panel origin")
    y: float | None = Field(default=None, description="Screen y of the panel origin")
    width: float | None = Field(default=None, gt=0, description="Panel width")
    height: float | None = Field(default=None, gt=0, description="Panel height")

    @property
    def is_empty(self) -> bool:
        return self.x is None and self.y is None and self.width is None and self.height is None


class CanvasShowResult(_WireModel):
    """Payload returned by a successful canvas show."""

    directory: str = Field(description="Session directory backing the canvas")
    target: str | None = Field(default=None, description="Target that was loaded")
    url: str | None = Field(default=None, description="Resolved URL, if any")
    status: CanvasShowStatus


# ---------------------------------------------------------------------------
# Request variants (discriminated union)
# ---------------------------------------------------------------------------


class StatusRequest(_WireModel):
    """Liveness check. Reaches its handler even while the host is paused."""

    type: Literal["status"] = "status"


class RPCStatusRequest(_WireModel):
    """Health of the agent gateway the host talks to."""

    type: Literal["rpcStatus"] = "rpcStatus"


class NotifyRequest(_WireModel):
    type: Literal["notify"] = "notify"
    title: str
    body: str
    sound: str | None = None
    priority: NotificationPriority | None = None
    delivery: NotificationDelivery | None = None


class EnsurePermissionsRequest(_WireModel):
    type: Literal["ensurePermissions"] = "ensurePermissions"
    capabilities: list[Capability] = Field(default_factory=list)
    interactive: bool = False


class RunShellRequest(_WireModel):
    type: Literal["runShell"] = "runShell"
    command: list[str]
    cwd: str | None = None
    env: dict[str, str] | None = None
    timeout_sec: float | None = Field(default=None, gt=0)
    needs_screen_recording: bool = False


class AgentRequest(_WireModel):
    type: Literal["agent"] = "agent"
    message: str
    thinking: str | None = None
    session: str | None = None
    deliver: bool = False
    to: str | None = None


class CanvasShowRequest(_WireModel):
    type: Literal["canvasShow"] = "canvasShow"
    session: str = "main"
    target: str | None = None
    placement: CanvasPlacement | None = None


class CanvasHideRequest(_WireModel):
    type: Literal["canvasHide"] = "canvasHide"
    session: str = "main"


class CanvasEvalRequest(_WireModel):
    type: Literal["canvasEval"] = "canvasEval"
    session: str = "main"
    script: str


class CanvasSnapshotRequest(_WireModel):
    type: Literal["canvasSnapshot"] = "canvasSnapshot"
    session: str = "main"
    out_path: str | None = None


class CanvasA2UIRequest(_WireModel):
    type: Literal["canvasA2UI"] = "canvasA2UI"
    session: str = "main"
    command: CanvasA2UICommand
    jsonl: str | None = None


class NodeListRequest(_WireModel):
    type: Literal["nodeList"] = "nodeList"


class NodeInvokeRequest(_WireModel):
    type: Literal["nodeInvoke"] = "nodeInvoke"
    node_id: str
    command: str
    params_json: str | None = Field(default=None, alias="paramsJSON")


class CameraSnapRequest(_WireModel):
    type: Literal["cameraSnap"] = "cameraSnap"
    facing: CameraFacing | None = None
    max_width: int | None = Field(default=None, gt=0)
    quality: float | None = Field(default=None, ge=0.0, le=1.0)
    out_path: str | None = None


class CameraClipRequest(_WireModel):
    type: Literal["cameraClip"] = "cameraClip"
    facing: CameraFacing | None = None
    duration_ms: int | None = Field(default=None, gt=0)
    include_audio: bool = True
    out_path: str | None = None


RequestVariant = Union[
    StatusRequest,
    RPCStatusRequest,
    NotifyRequest,
    EnsurePermissionsRequest,
    RunShellRequest,
    AgentRequest,
    CanvasShowRequest,
    CanvasHideRequest,
    CanvasEvalRequest,
    CanvasSnapshotRequest,
    CanvasA2UIRequest,
    NodeListRequest,
    NodeInvokeRequest,
    CameraSnapRequest,
    CameraClipRequest,
]

# Discriminated union for control requests
Request = Annotated[RequestVariant, Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class Response(BaseModel):
    """Uniform reply to every request.

    ``payload`` is opaque bytes (base64 on the wire). When present it is
    usually JSON-encoded structured data; ``message`` is always plain text.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    ok: bool
    message: str | None = None
    payload: bytes | None = None

    @field_validator("payload", mode="before")
    @classmethod
    def _decode_payload(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise ValueError(f"payload is not valid base64: {e}") from e
        return value

    @field_serializer("payload")
    def _encode_payload(self, value: bytes | None) -> str | None:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")

    @classmethod
    def failure(cls, message: str) -> Response:
        return cls(ok=False, message=message)

    @property
    def payload_text(self) -> str | None:
        """The payload decoded as UTF-8, if there is one."""
        if self.payload is None:
            return None
        return self.payload.decode("utf-8", errors="replace")
