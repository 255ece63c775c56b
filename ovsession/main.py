"""
Command line entrypoint.

Resolves settings, initialises logging and runs one operation against the
media server, printing the result as JSON on stdout.
"""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import sys
from typing import Any, Callable, Dict, Optional

from .client import OpenViduClient
from .enums import MediaMode, RecordingMode, Role
from .errors import OpenViduError, SettingsError
from .properties import SessionProperties, TokenOptions
from .rest import RestClient, Transport
from .session import Session
from .settings import load_settings
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)


def _cmd_list(client: OpenViduClient, args: argparse.Namespace) -> Any:
    client.fetch()
    return [session.to_dict() for session in client.active_sessions()]


def _cmd_create(client: OpenViduClient, args: argparse.Namespace) -> Any:
    properties = SessionProperties(
        media_mode=MediaMode.parse(args.media_mode),
        recording_mode=RecordingMode.parse(args.recording_mode),
        custom_session_id=args.custom_session_id,
    )
    session = client.create_session(properties)
    return {"sessionId": session.session_id}


def _cmd_token(client: OpenViduClient, args: argparse.Namespace) -> Any:
    session = Session(client.transport, session_id=args.session)
    token = session.issue_token(TokenOptions(role=Role.parse(args.role), data=args.data))
    return {"token": token}


def _cmd_disconnect(client: OpenViduClient, args: argparse.Namespace) -> Any:
    session = Session(client.transport, session_id=args.session)
    session.refresh()
    session.force_disconnect(args.connection)
    return session.to_dict()


def _cmd_unpublish(client: OpenViduClient, args: argparse.Namespace) -> Any:
    session = Session(client.transport, session_id=args.session)
    session.force_unpublish(args.stream)
    return {"unpublished": args.stream}


def _cmd_close(client: OpenViduClient, args: argparse.Namespace) -> Any:
    Session(client.transport, session_id=args.session).close()
    return {"closed": args.session}


COMMANDS: Dict[str, Callable[[OpenViduClient, argparse.Namespace], Any]] = {
    "list": _cmd_list,
    "create": _cmd_create,
    "token": _cmd_token,
    "disconnect": _cmd_disconnect,
    "unpublish": _cmd_unpublish,
    "close": _cmd_close,
}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Media server session client")
    parser.add_argument("--config", default=None, help="path to a YAML settings file")
    parser.add_argument("--log-level", default=None, help="override the configured log level")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="list active sessions")

    create = commands.add_parser("create", help="create a session")
    create.add_argument("--custom-session-id", default="")
    create.add_argument("--media-mode", default=MediaMode.ROUTED.value, choices=[m.value for m in MediaMode])
    create.add_argument(
        "--recording-mode", default=RecordingMode.MANUAL.value, choices=[m.value for m in RecordingMode]
    )

    token = commands.add_parser("token", help="issue a connection token")
    token.add_argument("session")
    token.add_argument("--role", default=Role.PUBLISHER.value, choices=[r.value for r in Role])
    token.add_argument("--data", default="")

    disconnect = commands.add_parser("disconnect", help="force-disconnect a connection")
    disconnect.add_argument("session")
    disconnect.add_argument("connection")

    unpublish = commands.add_parser("unpublish", help="force-unpublish a stream")
    unpublish.add_argument("session")
    unpublish.add_argument("stream")

    close = commands.add_parser("close", help="close a session")
    close.add_argument("session")

    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None, transport: Optional[Transport] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args.config)
    except SettingsError as exc:
        configure_logging(stream=sys.stderr)
        LOG.error("Invalid configuration: %s", exc)
        return 1

    level = logging.getLevelName((args.log_level or settings.log_level).upper())
    configure_logging(level=level if isinstance(level, int) else logging.INFO, stream=sys.stderr)

    with contextlib.ExitStack() as stack:
        if transport is None:
            transport = stack.enter_context(RestClient.from_settings(settings))
        client = OpenViduClient(transport)
        try:
            result = COMMANDS[args.command](client, args)
        except OpenViduError as exc:
            LOG.error("%s failed: %s", args.command, exc)
            return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(run())
