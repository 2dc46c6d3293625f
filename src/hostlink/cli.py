"""Command-line interface for hostlink.

Each verb builds exactly one request, sends it to the running host over
the control socket and prints the response. ``serve`` runs the host
itself.

Exit codes: 0 when the host answered ok, 1 when it answered with a
failure, 2 when the host could not be reached or answered garbage.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from hostlink import __version__
from hostlink.domain.errors import HostlinkError
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
    CanvasShowResult,
    CanvasSnapshotRequest,
    Capability,
    EnsurePermissionsRequest,
    NodeInvokeRequest,
    NodeListRequest,
    NotificationDelivery,
    NotificationPriority,
    NotifyRequest,
    RequestVariant,
    Response,
    RPCStatusRequest,
    RunShellRequest,
    StatusRequest,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TRANSPORT = 2

# Verbs whose response message is a path to a media file
MEDIA_REQUESTS = (CameraSnapRequest, CameraClipRequest)


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


def _add_session(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--session", default="main", help="Canvas session key (default: main)")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="hostlink",
        description="Talk to the running hostlink host over its control socket",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/hostlink.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON output",
    )
    parser.add_argument("-V", "--version", action="version", version=f"hostlink {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Run the host")

    notify = subparsers.add_parser("notify", help="Post a notification")
    notify.add_argument("--title", required=True)
    notify.add_argument("--body", required=True)
    notify.add_argument("--sound", default=None)
    notify.add_argument("--priority", choices=_values(NotificationPriority), default=None)
    notify.add_argument("--delivery", choices=_values(NotificationDelivery), default=None)

    perms = subparsers.add_parser("ensure-permissions", help="Check capability grants")
    perms.add_argument(
        "--cap",
        dest="caps",
        action="append",
        choices=_values(Capability),
        default=None,
        help="Capability to check (repeatable; default: all)",
    )
    perms.add_argument("--interactive", action="store_true")

    run = subparsers.add_parser("run", help="Run a shell command on the host")
    run.add_argument("--cwd", default=None)
    run.add_argument("--env", action="append", default=[], metavar="KEY=VAL")
    run.add_argument("--timeout", type=float, default=None, help="Command timeout in seconds")
    run.add_argument("--needs-screen-recording", action="store_true")
    run.add_argument("argv", nargs=argparse.REMAINDER, help="Command and its arguments")

    subparsers.add_parser("status", help="Check that the host is up")
    subparsers.add_parser("rpc-status", help="Check the agent gateway")

    agent = subparsers.add_parser("agent", help="Send a message to the agent")
    agent.add_argument("text", nargs="?", default=None)
    agent.add_argument("--message", default=None)
    agent.add_argument("--thinking", default=None)
    agent.add_argument("--session", default=None)
    agent.add_argument("--deliver", action="store_true")
    agent.add_argument("--to", default=None)

    node = subparsers.add_parser("node", help="Connected nodes")
    node_sub = node.add_subparsers(dest="node_command", required=True)
    node_sub.add_parser("list", help="List connected nodes")
    invoke = node_sub.add_parser("invoke", help="Invoke a command on a node")
    invoke.add_argument("--node", required=True)
    invoke.add_argument("--command", dest="node_cmd", required=True)
    invoke.add_argument("--params-json", default=None)

    canvas = subparsers.add_parser("canvas", help="Canvas panels")
    canvas_sub = canvas.add_subparsers(dest="canvas_command", required=True)
    show = canvas_sub.add_parser("show", help="Show a canvas panel")
    _add_session(show)
    show.add_argument("--target", "--path", dest="target", default=None)
    for dim in ("x", "y", "width", "height"):
        show.add_argument(f"--{dim}", type=float, default=None)
    hide = canvas_sub.add_parser("hide", help="Hide a canvas panel")
    _add_session(hide)
    evaluate = canvas_sub.add_parser("eval", help="Evaluate a script in the panel")
    _add_session(evaluate)
    evaluate.add_argument("--js", required=True)
    snapshot = canvas_sub.add_parser("snapshot", help="Save a PNG snapshot of the panel")
    _add_session(snapshot)
    snapshot.add_argument("--out", default=None)
    a2ui = canvas_sub.add_parser("a2ui", help="A2UI v0.8 messages")
    a2ui_sub = a2ui.add_subparsers(dest="a2ui_command", required=True)
    push = a2ui_sub.add_parser("push", help="Push a JSONL batch")
    _add_session(push)
    push.add_argument("--jsonl", type=Path, required=True, help="Path to the JSONL file")
    reset = a2ui_sub.add_parser("reset", help="Reset the A2UI surface")
    _add_session(reset)

    camera = subparsers.add_parser("camera", help="Camera capture")
    camera_sub = camera.add_subparsers(dest="camera_command", required=True)
    snap = camera_sub.add_parser("snap", help="Capture a still image")
    snap.add_argument("--facing", choices=_values(CameraFacing), default=None)
    snap.add_argument("--max-width", type=int, default=None)
    snap.add_argument("--quality", type=float, default=None)
    snap.add_argument("--out", default=None)
    clip = camera_sub.add_parser("clip", help="Record a short clip")
    clip.add_argument("--facing", choices=_values(CameraFacing), default=None)
    clip.add_argument("--duration-ms", type=int, default=None)
    clip.add_argument("--no-audio", action="store_true")
    clip.add_argument("--out", default=None)

    return parser.parse_args(argv)


def _parse_env(pairs: list[str]) -> dict[str, str] | None:
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if sep and key:
            env[key] = value
    return env or None


def _placement(args: argparse.Namespace) -> CanvasPlacement | None:
    placement = CanvasPlacement(x=args.x, y=args.y, width=args.width, height=args.height)
    return None if placement.is_empty else placement


def build_request(args: argparse.Namespace) -> RequestVariant:
    """Map parsed arguments to the one request the verb stands for.

    Raises:
        ValueError: If required input is missing.
        OSError: If the A2UI JSONL file cannot be read.
    """
    match args.command:
        case "status":
            return StatusRequest()
        case "rpc-status":
            return RPCStatusRequest()
        case "notify":
            return NotifyRequest(
                title=args.title,
                body=args.body,
                sound=args.sound,
                priority=args.priority,
                delivery=args.delivery,
            )
        case "ensure-permissions":
            caps = args.caps or _values(Capability)
            return EnsurePermissionsRequest(capabilities=caps, interactive=args.interactive)
        case "run":
            command = list(args.argv)
            if command and command[0] == "--":
                command = command[1:]
            return RunShellRequest(
                command=command,
                cwd=args.cwd,
                env=_parse_env(args.env),
                timeout_sec=args.timeout,
                needs_screen_recording=args.needs_screen_recording,
            )
        case "agent":
            message = args.message if args.message is not None else args.text
            if message is None:
                raise ValueError("agent requires a message")
            return AgentRequest(
                message=message,
                thinking=args.thinking,
                session=args.session,
                deliver=args.deliver,
                to=args.to,
            )
        case "node":
            if args.node_command == "list":
                return NodeListRequest()
            return NodeInvokeRequest(node_id=args.node, command=args.node_cmd, params_json=args.params_json)
        case "canvas":
            return _build_canvas_request(args)
        case "camera":
            if args.camera_command == "snap":
                return CameraSnapRequest(
                    facing=args.facing,
                    max_width=args.max_width,
                    quality=args.quality,
                    out_path=args.out,
                )
            return CameraClipRequest(
                facing=args.facing,
                duration_ms=args.duration_ms,
                include_audio=not args.no_audio,
                out_path=args.out,
            )
    raise ValueError(f"unknown command: {args.command}")


def _build_canvas_request(args: argparse.Namespace) -> RequestVariant:
    match args.canvas_command:
        case "show":
            return CanvasShowRequest(session=args.session, target=args.target, placement=_placement(args))
        case "hide":
            return CanvasHideRequest(session=args.session)
        case "eval":
            return CanvasEvalRequest(session=args.session, script=args.js)
        case "snapshot":
            return CanvasSnapshotRequest(session=args.session, out_path=args.out)
        case "a2ui" if args.a2ui_command == "push":
            jsonl = args.jsonl.read_text(encoding="utf-8")
            return CanvasA2UIRequest(session=args.session, command=CanvasA2UICommand.PUSH_JSONL, jsonl=jsonl)
        case "a2ui":
            return CanvasA2UIRequest(session=args.session, command=CanvasA2UICommand.RESET)
    raise ValueError(f"unknown canvas command: {args.canvas_command}")


def format_text(request: RequestVariant, response: Response) -> tuple[str, str]:
    """Render a response for humans.

    Returns:
        ``(stdout, stderr)`` text, either of which may be empty.
    """
    if not response.ok:
        return "", f"{response.message or 'failed'}\n"

    lines: list[str] = []
    if isinstance(request, CanvasShowRequest):
        if response.message:
            lines.append(response.message)
        if response.payload:
            try:
                info = CanvasShowResult.model_validate_json(response.payload)
            except ValueError:
                info = None
            if info is not None:
                lines.append(f"STATUS:{info.status.value}")
                if info.url:
                    lines.append(f"URL:{info.url}")
    elif isinstance(request, MEDIA_REQUESTS):
        if response.message:
            lines.append(f"MEDIA:{response.message}")
    elif response.payload:
        return response.payload_text.rstrip("\n") + "\n", ""
    elif response.message:
        lines.append(response.message)
    return "".join(f"{line}\n" for line in lines), ""


def format_json(request: RequestVariant, response: Response) -> str:
    """Render a response as ``{ok, message, result|payload}`` JSON."""
    output: dict = {"ok": response.ok, "message": response.message or ""}
    if response.payload and not isinstance(request, MEDIA_REQUESTS):
        try:
            output["result"] = json.loads(response.payload)
        except ValueError:
            output["payload"] = response.payload_text
    return json.dumps(output, indent=2)


def _send(settings, request: RequestVariant) -> Response:
    from hostlink.transport.client import ControlClient

    client = ControlClient(
        settings.socket.resolved_path,
        default_timeout=settings.socket.default_timeout,
        shell_timeout_cap=settings.socket.shell_timeout_cap,
    )
    return client.send(request)


async def _serve(settings) -> None:
    from hostlink.host.app import HostApp

    await HostApp(settings).run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the hostlink CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return EXIT_OK

    from hostlink.config.settings import load_settings
    from hostlink.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting host on %s", settings.socket.resolved_path)
        asyncio.run(_serve(settings))
        return EXIT_OK

    try:
        request = build_request(args)
        response = _send(settings, request)
    except (HostlinkError, OSError, ValueError) as e:
        print(f"hostlink error: {e}", file=sys.stderr)
        return EXIT_TRANSPORT

    if args.json:
        print(format_json(request, response))
    else:
        out, err = format_text(request, response)
        sys.stdout.write(out)
        sys.stderr.write(err)
    return EXIT_OK if response.ok else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
