#!/usr/bin/env python3
"""
gwsmail Command Line Interface

Main entry point for the `gwsmail` command. Builds messages; sending the
result is left to whatever consumes the output.

Usage:
    gwsmail compose --from me@example.com --to you@example.com --subject Hi --body Hello
    gwsmail compose --reply-to-message-id 18c1f... --reply-all --body "Thanks" --format json
    gwsmail reply-headers 18c1f...
    gwsmail track-key --save
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

import aiohttp

from gwsmail import __version__
from gwsmail.config_models import GwsMailConfig, load_config, save_config
from gwsmail.logging_config import setup_logging
from gwsmail.mail.encoding import HeaderInjectionError
from gwsmail.mail.models import MailAttachment, MailOptions
from gwsmail.mail.reply import reply_headers
from gwsmail.mail.send import ReplyRequestError, prepare_outgoing
from gwsmail.providers.base import MessageStoreError
from gwsmail.providers.gmail_store import GmailMessageStore
from gwsmail.tracking import TrackingError
from gwsmail.tracking.crypto import generate_key


logger = logging.getLogger(__name__)

CLI_ERRORS = (
    ReplyRequestError,
    HeaderInjectionError,
    TrackingError,
    MessageStoreError,
    aiohttp.ClientError,
    OSError,
)


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [x.strip() for x in value.split(",") if x.strip()]


def _read_text(inline: str | None, path: str | None) -> str:
    if path == "-":
        return sys.stdin.read()
    if path:
        return Path(path).read_text(encoding="utf-8")
    return inline or ""


def _header_arg(item: str) -> tuple[str, str]:
    name, sep, value = item.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"invalid header {item!r}, expected 'Name: value'")
    return name.strip(), value.strip()


def _open_store(config: GwsMailConfig) -> GmailMessageStore:
    env_name = config.mail.access_token_env
    token = os.environ.get(env_name, "")
    if not token:
        raise ReplyRequestError(f"replying needs a Gmail access token in ${env_name}")
    return GmailMessageStore(token)


def build_mail_options(args, config: GwsMailConfig) -> MailOptions:
    """Translate compose arguments into MailOptions."""
    return MailOptions(
        from_addr=args.from_addr or config.mail.default_from,
        to=_split_list(args.to),
        cc=_split_list(args.cc),
        bcc=_split_list(args.bcc),
        reply_to=args.reply_to or "",
        subject=args.subject or "",
        body=_read_text(args.body, args.body_file),
        body_html=_read_text(args.html, args.html_file),
        attachments=[MailAttachment.from_path(p) for p in args.attach or []],
        additional_headers=args.header or [],
    )


async def _compose(args, config: GwsMailConfig):
    options = build_mail_options(args, config)
    replying = bool(args.reply_to_message_id or args.thread_id)
    has_token = bool(os.environ.get(config.mail.access_token_env))
    needs_sender = not options.from_addr.strip()
    store = _open_store(config) if replying or (needs_sender and has_token) else None

    if needs_sender:
        if store is not None:
            options = options.with_changes(from_addr=await store.get_profile_email())
        if not options.from_addr.strip():
            raise ReplyRequestError(
                "a sender is required: pass --from or set mail.default_from"
            )

    self_email = args.self_email or config.mail.self_email
    if store is not None and args.reply_all and not self_email:
        self_email = await store.get_profile_email()

    return await prepare_outgoing(
        options,
        store=store,
        reply_to_message_id=args.reply_to_message_id or "",
        thread_id=args.thread_id or "",
        reply_all=args.reply_all,
        self_email=self_email,
        tracking=config.tracking if args.track else None,
    )


def cmd_compose(args):
    """Handle compose subcommand."""
    config = load_config(args.config)
    outgoing = asyncio.run(_compose(args, config))

    if args.format == "json":
        result = {"payload": outgoing.payload}
        if outgoing.tracking_id:
            result["tracking_id"] = outgoing.tracking_id
        print(json.dumps(result, indent=2))
    else:
        sys.stdout.buffer.write(outgoing.raw)
        sys.stdout.buffer.flush()
    return 0


def cmd_reply_headers(args):
    """Handle reply-headers subcommand."""
    config = load_config(args.config)
    store = _open_store(config)
    in_reply_to, references, thread_id = asyncio.run(reply_headers(store, args.message_id))
    print(json.dumps(
        {"in_reply_to": in_reply_to, "references": references, "thread_id": thread_id},
        indent=2,
    ))
    return 0


def cmd_track_key(args):
    """Handle track-key subcommand."""
    key = generate_key()
    if args.save:
        config = load_config(args.config)
        config.tracking.tracking_key = key
        path = save_config(config, args.config)
        print(f"Tracking key saved to {path}")
        return 0
    print(key)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gwsmail",
        description="Compose Gmail messages and replies as raw RFC 5322",
    )
    parser.add_argument(
        "--version", "-V", action="store_true", help="Show version and exit"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--config", default=None, help="Path to gwsmail.yaml (default: args/gwsmail.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Compose subcommand
    compose = subparsers.add_parser("compose", help="Build a message or reply")
    compose.add_argument("--from", dest="from_addr", help="Sender, e.g. 'Name <me@example.com>'")
    compose.add_argument("--to", help="Recipients (comma-separated)")
    compose.add_argument("--cc", help="CC recipients (comma-separated)")
    compose.add_argument("--bcc", help="BCC recipients (comma-separated)")
    compose.add_argument("--reply-to", help="Reply-To address")
    compose.add_argument("--subject", help="Subject line")
    compose.add_argument("--body", help="Plain text body")
    compose.add_argument("--body-file", help="Read plain text body from file ('-' for stdin)")
    compose.add_argument("--html", help="HTML body")
    compose.add_argument("--html-file", help="Read HTML body from file ('-' for stdin)")
    compose.add_argument(
        "--attach", action="append", metavar="PATH", help="Attach a file (repeatable)"
    )
    compose.add_argument(
        "--header", action="append", type=_header_arg, metavar="'NAME: VALUE'",
        help="Extra header (repeatable)",
    )
    compose.add_argument("--reply-to-message-id", help="Reply to this Gmail message ID")
    compose.add_argument("--thread-id", help="Reply to the latest message in this thread")
    compose.add_argument(
        "--reply-all", action="store_true", help="Reply to sender and all recipients"
    )
    compose.add_argument("--self-email", help="Your address, removed from reply-all recipients")
    compose.add_argument("--track", action="store_true", help="Embed an open-tracking pixel")
    compose.add_argument(
        "--format", choices=("raw", "json"), default="raw",
        help="raw RFC 5322 bytes, or the JSON body for users.messages.send",
    )
    compose.set_defaults(func=cmd_compose)

    # Reply-headers subcommand
    headers = subparsers.add_parser(
        "reply-headers", help="Show In-Reply-To / References for a message"
    )
    headers.add_argument("message_id", help="Gmail message ID")
    headers.set_defaults(func=cmd_reply_headers)

    # Track-key subcommand
    track_key = subparsers.add_parser("track-key", help="Generate a tracking encryption key")
    track_key.add_argument(
        "--save", action="store_true", help="Store the key in the config file"
    )
    track_key.set_defaults(func=cmd_track_key)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    # Handle --version at top level
    if args.version:
        print(f"gwsmail {__version__}")
        return 0

    # If no command given, show help
    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except CLI_ERRORS as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
