"""
Tool: Message Composer
Purpose: Assemble a complete RFC 5322 message from MailOptions

Header order:
    From, To, Cc, Bcc, Subject, Reply-To, Message-ID, additional headers,
    MIME-Version, Content-Type (+ Content-Transfer-Encoding for single parts)

Content-Type, Content-Transfer-Encoding and MIME-Version in additional_headers
are ignored. A Message-ID is generated unless the caller supplied one through
additional_headers, in which case the supplied value is written once in its
original position.

Usage:
    from gwsmail.mail.composer import build_rfc822
    from gwsmail.mail.models import MailOptions

    raw = build_rfc822(MailOptions(from_addr="a@b.com", to=["c@d.com"], subject="Hi", body="Hello"))
"""

from __future__ import annotations

import logging

from gwsmail.mail.addresses import format_address_list
from gwsmail.mail.encoding import encode_header_if_needed, ensure_no_line_breaks, normalize_crlf
from gwsmail.mail.identifiers import random_message_id
from gwsmail.mail.mime import CRLF, build_mime_body
from gwsmail.mail.models import Header, MailOptions, has_header


logger = logging.getLogger(__name__)

# Set only by the MIME body builder
MIME_STRUCTURE_HEADERS = frozenset({"content-type", "content-transfer-encoding", "mime-version"})


def validate_options(options: MailOptions) -> None:
    """
    Reject any header-bound value that contains CR or LF.

    Raises:
        HeaderInjectionError: naming the offending header
    """
    ensure_no_line_breaks("From", options.from_addr)
    for name, values in (("To", options.to), ("Cc", options.cc), ("Bcc", options.bcc)):
        for value in values:
            ensure_no_line_breaks(name, value)
    ensure_no_line_breaks("Reply-To", options.reply_to)
    ensure_no_line_breaks("Subject", options.subject)

    for name, value in options.additional_headers:
        ensure_no_line_breaks("header name", name)
        ensure_no_line_breaks(name, value)

    for attachment in options.attachments:
        ensure_no_line_breaks("attachment filename", attachment.filename)
        ensure_no_line_breaks("attachment MIME type", attachment.mime_type)


def build_headers(options: MailOptions) -> list[Header]:
    """Build the top-level header list, excluding MIME headers."""
    headers: list[Header] = [("From", format_address_list([options.from_addr]))]

    for name, values in (("To", options.to), ("Cc", options.cc), ("Bcc", options.bcc)):
        formatted = format_address_list(values)
        if formatted:
            headers.append((name, formatted))

    headers.append(("Subject", encode_header_if_needed(options.subject)))

    if options.reply_to.strip():
        headers.append(("Reply-To", format_address_list([options.reply_to])))

    if not has_header(options.additional_headers, "Message-ID"):
        headers.append(("Message-ID", random_message_id(options.from_addr)))

    message_id_written = False
    for name, value in options.additional_headers:
        if name.lower() in MIME_STRUCTURE_HEADERS:
            logger.warning("ignoring %s header, the MIME body sets its own", name)
            continue
        if name.lower() == "message-id":
            if message_id_written:
                continue
            message_id_written = True
        headers.append((name, encode_header_if_needed(value)))

    return headers


def build_rfc822(options: MailOptions) -> bytes:
    """
    Compose the full message.

    Returns:
        The message as bytes with CRLF line endings throughout

    Raises:
        HeaderInjectionError: if a header-bound value contains CR or LF
    """
    validate_options(options)

    body = build_mime_body(options)
    headers = build_headers(options)
    headers.append(("MIME-Version", "1.0"))
    headers.extend(body.headers)

    header_block = "".join(f"{name}: {value}{CRLF}" for name, value in headers)
    message = header_block + CRLF + body.render_body()

    return normalize_crlf(message).encode("utf-8")
