"""Command-line interface for flowcanvas."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

import click

from flowcanvas import __version__
from flowcanvas.config import (
    SUPPORTED_KINDS,
    Settings,
    load_settings,
    save_settings,
    set_settings_value,
    settings_path,
)
from flowcanvas.exceptions import FlowCanvasError
from flowcanvas.ui.console import Console

console = Console()


def _settings() -> Settings:
    try:
        return load_settings()
    except FlowCanvasError as e:
        console.error(str(e))
        sys.exit(1)


def _socket_path(settings: Settings, canvas_id: str, socket: str | None) -> str:
    return socket or settings.ipc.socket_path(canvas_id)


def _require_socket(path: str) -> None:
    if not Path(path).exists():
        console.error(f"Socket not found: {path}")
        sys.exit(1)


def _setup_logging(log_file: str, level: str) -> None:
    """Send logs to a file; the terminal belongs to the canvas view."""
    logging.basicConfig(
        filename=log_file,
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__, prog_name="flowcanvas")
def main():
    """flowcanvas - interactive flowchart canvas for terminal panes."""
    pass


# =========================================================================
# Canvas
# =========================================================================

@main.command()
@click.argument("kind", default="flowchart", type=click.Choice(SUPPORTED_KINDS))
@click.option("--id", "canvas_id", default="default", help="Canvas identifier.")
@click.option("--config", "config_json", default=None, help="Configuration as a JSON string.")
@click.option("--config-file", default=None, help="Path to a configuration JSON file.")
@click.option("--socket", default=None, help="Unix socket path for IPC.")
@click.option("--log-file", default=None, help="Where to write the canvas log.")
def show(
    kind: str, canvas_id: str, config_json: str | None, config_file: str | None,
    socket: str | None, log_file: str | None,
):
    """Show a flowchart canvas in the current terminal."""
    from flowcanvas.canvas.app import CanvasApp
    from flowcanvas.canvas.session import Session
    from flowcanvas.models import load_flowchart

    settings = _settings()
    _setup_logging(log_file or settings.canvas.log_file(canvas_id), settings.canvas.log_level)

    try:
        config = load_flowchart(config_json, config_file)
    except FlowCanvasError as e:
        console.error(str(e))
        sys.exit(1)

    app = CanvasApp(Session.from_config(config), socket_path=socket)
    asyncio.run(app.run())


@main.command()
@click.argument("kind", default="flowchart", type=click.Choice(SUPPORTED_KINDS))
@click.option("--id", "canvas_id", default=None, help="Canvas identifier.")
@click.option("--config", "config_json", default=None, help="Configuration as a JSON string.")
@click.option("--socket", default=None, help="Unix socket path for IPC.")
def spawn(kind: str, canvas_id: str | None, config_json: str | None, socket: str | None):
    """Spawn a canvas in a tmux/iTerm2 split, reusing the open one if any."""
    from flowcanvas.models import load_flowchart
    from flowcanvas.terminal.lifecycle import PaneManager, build_show_command, write_config_file

    settings = _settings()
    canvas_id = canvas_id or f"flow-{int(time.time() * 1000)}"
    socket_path = _socket_path(settings, canvas_id, socket)

    try:
        config_file = None
        if config_json:
            config_file = write_config_file(canvas_id, load_flowchart(config_json))
        command = build_show_command(canvas_id, kind, socket_path, config_file)
        record = PaneManager.from_config(settings.pane).spawn(command)
    except FlowCanvasError as e:
        console.error(str(e))
        sys.exit(1)

    console.success(f"Spawned {kind} canvas '{canvas_id}' in pane {record.pane_id}")
    console.info(f"Socket: {socket_path}")


@main.command()
@click.argument("canvas_id")
@click.option("--config", "config_json", default=None, help="New configuration as a JSON string.")
@click.option("--socket", default=None, help="Unix socket path.")
def update(canvas_id: str, config_json: str | None, socket: str | None):
    """Push a new configuration to a running canvas."""
    from flowcanvas.ipc.client import send_message
    from flowcanvas.ipc.protocol import UpdateMessage
    from flowcanvas.models import load_flowchart

    settings = _settings()
    socket_path = _socket_path(settings, canvas_id, socket)
    _require_socket(socket_path)

    try:
        config = load_flowchart(config_json)
        message = UpdateMessage(config=config.to_wire())
        asyncio.run(send_message(socket_path, message, settings.ipc.connect_timeout))
    except FlowCanvasError as e:
        console.error(str(e))
        sys.exit(1)

    console.success(f"Sent update to canvas '{canvas_id}'")


@main.command()
@click.argument("canvas_id")
@click.option("--socket", default=None, help="Unix socket path.")
@click.option("--pretty", is_flag=True, help="Show as a table instead of JSON.")
def comments(canvas_id: str, socket: str | None, pretty: bool):
    """Print the comments entered on a running canvas."""
    from flowcanvas.ipc.client import request
    from flowcanvas.ipc.protocol import GetCommentsMessage

    settings = _settings()
    socket_path = _socket_path(settings, canvas_id, socket)
    _require_socket(socket_path)

    try:
        reply = asyncio.run(
            request(socket_path, GetCommentsMessage(), "comments", settings.ipc.connect_timeout)
        )
    except FlowCanvasError as e:
        console.error(str(e))
        sys.exit(1)

    if pretty:
        console.show_comments(reply.data)
    else:
        click.echo(json.dumps(reply.data, indent=2, ensure_ascii=False))


@main.command()
@click.argument("canvas_id")
@click.option("--socket", default=None, help="Unix socket path.")
def ping(canvas_id: str, socket: str | None):
    """Check that a canvas is alive."""
    from flowcanvas.ipc.client import request
    from flowcanvas.ipc.protocol import PingMessage

    settings = _settings()
    socket_path = _socket_path(settings, canvas_id, socket)
    _require_socket(socket_path)

    try:
        asyncio.run(request(socket_path, PingMessage(), "pong", settings.ipc.connect_timeout))
    except FlowCanvasError as e:
        console.error(str(e))
        sys.exit(1)

    console.success(f"Canvas '{canvas_id}' is alive")


@main.command()
@click.option("--id", "canvas_id", default=None, help="Also tell this canvas to exit.")
@click.option("--socket", default=None, help="Unix socket path.")
def close(canvas_id: str | None, socket: str | None):
    """Close the canvas pane."""
    from flowcanvas.ipc.client import send_message
    from flowcanvas.ipc.protocol import CloseMessage
    from flowcanvas.terminal.lifecycle import PaneManager

    settings = _settings()
    if canvas_id or socket:
        socket_path = _socket_path(settings, canvas_id or "default", socket)
        if Path(socket_path).exists():
            try:
                asyncio.run(
                    send_message(socket_path, CloseMessage(), settings.ipc.connect_timeout)
                )
            except FlowCanvasError as e:
                console.warning(str(e))

    if PaneManager.from_config(settings.pane).close():
        console.success("Canvas closed")
    else:
        console.info("No canvas pane open")


# =========================================================================
# Settings Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
def config_cmd(action: str, key: str | None, value: str | None):
    """Manage flowcanvas settings."""
    settings = _settings()

    if action == "show":
        console.info(f"Settings file: {settings_path()}")
        console.console.print_json(json.dumps(settings.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: flowcanvas config get <key>")
            sys.exit(1)
        data = settings.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: flowcanvas config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            settings = set_settings_value(settings, key, parsed_value)
            save_settings(settings)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except FlowCanvasError as e:
            console.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()
