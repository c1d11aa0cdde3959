"""
Tool: Outgoing Message Preparation
Purpose: Turn send/reply requests into raw RFC 5322 bytes and a Gmail send body

Flow:
    validate flags -> fetch reply info (when replying) -> apply threading
    headers and reply-all recipients -> optional tracking pixel -> compose
    -> base64url send payload

The send call itself is left to the caller.

Usage:
    from gwsmail.mail.send import prepare_outgoing

    outgoing = await prepare_outgoing(options, store, reply_to_message_id="18c1f...", reply_all=True)
    outgoing.payload  # {"raw": "...", "threadId": "18c1e..."}
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gwsmail.mail.addresses import parse_email_addresses
from gwsmail.mail.composer import build_rfc822
from gwsmail.mail.models import MailOptions, ReplyInfo, has_header
from gwsmail.mail.recipients import build_reply_all_recipients
from gwsmail.mail.reply import fetch_reply_info
from gwsmail.tracking.pixel import inject_tracking_pixel


if TYPE_CHECKING:
    from gwsmail.config_models import TrackingConfig
    from gwsmail.providers.base import MessageStore

logger = logging.getLogger(__name__)


class ReplyRequestError(ValueError):
    """The send or reply request is incomplete or its flags are inconsistent."""


@dataclass
class OutgoingMessage:
    raw: bytes
    payload: dict[str, Any]
    tracking_id: str = ""
    reply: ReplyInfo = field(default_factory=ReplyInfo)


def validate_reply_request(
    to: Iterable[str],
    reply_all: bool = False,
    reply_to_message_id: str = "",
    thread_id: str = "",
) -> None:
    """
    Check reply flags before anything is fetched.

    Reply-all needs something to reply to; otherwise explicit recipients
    are required.
    """
    if reply_all:
        if not reply_to_message_id.strip() and not thread_id.strip():
            raise ReplyRequestError("reply-all requires a message id or a thread id")
        return
    if not any(t.strip() for t in to):
        raise ReplyRequestError("at least one recipient is required")


def _merge_recipients(resolved: list[str], explicit: Iterable[str], exclude: set[str]) -> list[str]:
    merged = list(resolved)
    seen = {a.lower() for a in resolved} | exclude
    for entry in explicit:
        addresses = parse_email_addresses(entry)
        if not addresses or addresses[0] in seen:
            continue
        seen.add(addresses[0])
        merged.append(entry.strip())
    return merged


def apply_reply(
    options: MailOptions,
    info: ReplyInfo,
    reply_all: bool = False,
    self_email: str = "",
) -> MailOptions:
    """
    Return a copy of options threaded onto the message described by info.

    In-Reply-To and References are added unless the caller set them. With
    reply_all the resolved recipients come first and explicit To/Cc entries
    are kept after them.
    """
    headers = list(options.additional_headers)
    if info.in_reply_to and not has_header(headers, "In-Reply-To"):
        headers.append(("In-Reply-To", info.in_reply_to))
    if info.references and not has_header(headers, "References"):
        headers.append(("References", info.references))

    changes: dict[str, Any] = {"additional_headers": headers}

    if reply_all:
        to, cc = build_reply_all_recipients(info, self_email)
        to = _merge_recipients(to, options.to, set())
        in_to = {a for entry in to for a in parse_email_addresses(entry)}
        changes["to"] = to
        changes["cc"] = _merge_recipients(cc, options.cc, in_to)

    return options.with_changes(**changes)


def build_send_payload(raw: bytes, thread_id: str | None = None) -> dict[str, Any]:
    """Wrap raw message bytes the way users.messages.send expects them."""
    payload: dict[str, Any] = {"raw": base64.urlsafe_b64encode(raw).decode("ascii")}
    if thread_id:
        payload["threadId"] = thread_id
    return payload


async def prepare_outgoing(
    options: MailOptions,
    store: MessageStore | None = None,
    reply_to_message_id: str = "",
    thread_id: str = "",
    reply_all: bool = False,
    self_email: str = "",
    tracking: TrackingConfig | None = None,
) -> OutgoingMessage:
    """
    Run the whole send/reply preparation.

    Raises:
        ReplyRequestError: inconsistent flags, or a reply without a store
        HeaderInjectionError: CR/LF in a header-bound value
        TrackingError: tracking requested but not applicable
        Any exception raised by the store, unchanged
    """
    validate_reply_request(options.to, reply_all, reply_to_message_id, thread_id)

    info = ReplyInfo()
    if reply_to_message_id.strip() or thread_id.strip():
        if store is None:
            raise ReplyRequestError("replying requires a message store")
        info = await fetch_reply_info(store, reply_to_message_id, thread_id)
        if not self_email:
            senders = parse_email_addresses(options.from_addr)
            self_email = senders[0] if senders else ""
        options = apply_reply(options, info, reply_all=reply_all, self_email=self_email)
        logger.debug("resolved reply thread=%s in_reply_to=%s", info.thread_id, info.in_reply_to)

    tracking_id = ""
    if tracking is not None:
        options, tracking_id = inject_tracking_pixel(options, tracking)

    raw = build_rfc822(options)
    payload = build_send_payload(raw, info.thread_id or thread_id.strip() or None)
    return OutgoingMessage(raw=raw, payload=payload, tracking_id=tracking_id, reply=info)
