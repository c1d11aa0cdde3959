"""
Tool: Reply Threading
Purpose: Derive In-Reply-To, References and thread id from a prior message

The only blocking step is a single awaited call to the message store.
Store errors propagate unchanged; there is no retry.

Usage:
    from gwsmail.mail.reply import fetch_reply_info, reply_headers

    in_reply_to, references, thread_id = await reply_headers(store, "18c1f...")
    info = await fetch_reply_info(store, thread_id="18c1e...")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from gwsmail.mail.addresses import parse_email_addresses
from gwsmail.mail.models import ReplyInfo, StoredMessage


if TYPE_CHECKING:
    from gwsmail.providers.base import MessageStore

logger = logging.getLogger(__name__)


def build_references(existing: str, in_reply_to: str) -> str:
    """
    Append in_reply_to to an existing References value.

    The values are space-joined as-is: repeated whitespace and ids already
    present in the chain are left alone.
    """
    if existing and in_reply_to:
        return f"{existing} {in_reply_to}"
    return existing or in_reply_to


def threading_from_message(message: StoredMessage) -> tuple[str, str]:
    """Return (in_reply_to, references) for a reply to message."""
    # Lookup is case-insensitive, so both Message-ID and Message-Id match
    in_reply_to = message.header("Message-ID")
    return in_reply_to, build_references(message.header("References"), in_reply_to)


def reply_info_from_message(message: StoredMessage, thread_id: str = "") -> ReplyInfo:
    in_reply_to, references = threading_from_message(message)
    return ReplyInfo(
        thread_id=message.thread_id or thread_id,
        from_addr=message.header("From"),
        reply_to_addr=message.header("Reply-To"),
        to_addrs=parse_email_addresses(message.header("To")),
        cc_addrs=parse_email_addresses(message.header("Cc")),
        in_reply_to=in_reply_to,
        references=references,
    )


async def reply_headers(store: MessageStore, message_id: str) -> tuple[str, str, str]:
    """
    Fetch a message and compute its reply headers.

    Returns:
        (in_reply_to, references, thread_id)
    """
    message = await store.get_message(message_id)
    in_reply_to, references = threading_from_message(message)
    return in_reply_to, references, message.thread_id


def select_latest_thread_message(
    messages: Iterable[StoredMessage | None],
) -> StoredMessage | None:
    """
    Pick the message with the greatest internal date.

    None entries are skipped and the first maximum wins on ties. If no
    message carries a timestamp, the last non-None entry is returned.
    """
    latest: StoredMessage | None = None
    last_seen: StoredMessage | None = None

    for message in messages:
        if message is None:
            continue
        last_seen = message
        if message.internal_date <= 0:
            continue
        if latest is None or message.internal_date > latest.internal_date:
            latest = message

    return latest or last_seen


async def fetch_reply_info(
    store: MessageStore,
    message_id: str = "",
    thread_id: str = "",
) -> ReplyInfo:
    """
    Build ReplyInfo from a message id, or from the latest message of a thread.

    With neither id given, an empty ReplyInfo is returned without fetching.
    """
    message_id = message_id.strip()
    thread_id = thread_id.strip()

    if message_id:
        message = await store.get_message(message_id)
        return reply_info_from_message(message)

    if thread_id:
        thread = await store.get_thread(thread_id)
        message = select_latest_thread_message(thread.messages)
        if message is None:
            logger.debug("thread %s has no messages", thread_id)
            return ReplyInfo(thread_id=thread_id)
        return reply_info_from_message(message, thread_id=thread_id)

    return ReplyInfo()
