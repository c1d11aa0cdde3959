"""
Tool: Mail Models
Purpose: Data structures for outbound mail composition and reply threading

Usage:
    from gwsmail.mail.models import MailOptions, MailAttachment, ReplyInfo

Headers are kept as ordered (name, value) pairs rather than dicts so that
output order is deterministic and two spellings of the same header name
never silently collapse into one entry.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Union


Header = tuple[str, str]
HeaderSource = Union[Mapping[str, str], Iterable[Header], None]

DEFAULT_MIME_TYPE = "application/octet-stream"


def header_pairs(headers: HeaderSource) -> list[Header]:
    """Return headers as a list of (name, value) pairs, preserving order."""
    if not headers:
        return []
    if isinstance(headers, Mapping):
        return [(str(k), str(v)) for k, v in headers.items()]
    return [(str(k), str(v)) for k, v in headers]


def get_header(headers: HeaderSource, name: str) -> str:
    """Case-insensitive header lookup. Returns the first match or ''."""
    wanted = name.lower()
    for key, value in header_pairs(headers):
        if key.lower() == wanted:
            return value
    return ""


def has_header(headers: HeaderSource, name: str) -> bool:
    """Case-insensitive membership test."""
    wanted = name.lower()
    return any(key.lower() == wanted for key, _ in header_pairs(headers))


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_MIME_TYPE


@dataclass
class MailAttachment:
    """
    A file attached to an outbound message.

    The data is carried byte-for-byte into the base64-encoded part.
    """

    filename: str
    mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> MailAttachment:
        """Read an attachment from disk, guessing the MIME type if not given."""
        path = Path(path)
        return cls(
            filename=path.name,
            mime_type=mime_type or guess_mime_type(path.name),
            data=path.read_bytes(),
        )


@dataclass
class MailOptions:
    """
    Structured input for the message composer.

    At least one of body/body_html should be set for a well-formed message;
    the composer does not enforce it.
    """

    from_addr: str
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    reply_to: str = ""
    subject: str = ""
    body: str = ""
    body_html: str = ""
    attachments: list[MailAttachment] = field(default_factory=list)
    additional_headers: list[Header] = field(default_factory=list)

    def __post_init__(self):
        self.additional_headers = header_pairs(self.additional_headers)

    def with_changes(self, **changes) -> MailOptions:
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass(frozen=True)
class ReplyInfo:
    """
    Metadata of the message being replied to.

    from_addr and reply_to_addr hold the raw header values (display names
    included); to_addrs and cc_addrs are parsed, lowercased addresses.
    Built once per reply operation and never mutated.
    """

    thread_id: str = ""
    from_addr: str = ""
    reply_to_addr: str = ""
    to_addrs: list[str] = field(default_factory=list)
    cc_addrs: list[str] = field(default_factory=list)
    in_reply_to: str = ""
    references: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.thread_id or self.from_addr or self.in_reply_to)


@dataclass
class StoredMessage:
    """Message metadata as returned by a message store."""

    id: str
    thread_id: str = ""
    internal_date: int = 0  # epoch milliseconds, 0 when unknown
    headers: list[Header] = field(default_factory=list)

    def header(self, name: str) -> str:
        return get_header(self.headers, name)


@dataclass
class StoredThread:
    """A thread as returned by a message store. Entries may be None."""

    id: str
    messages: list[StoredMessage | None] = field(default_factory=list)
