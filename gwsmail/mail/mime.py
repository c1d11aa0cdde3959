"""
Tool: MIME Body Builder
Purpose: Assemble the MIME part tree for an outbound message

Structures produced:
    body only            -> text/plain
    body_html only       -> text/html
    body + body_html     -> multipart/alternative (plain first, then html)
    any attachments      -> multipart/mixed wrapping the above, then one
                            base64 part per attachment in input order

Usage:
    from gwsmail.mail.mime import build_mime_body

    part = build_mime_body(options)
    part.headers        # top-level Content-Type (+ Content-Transfer-Encoding)
    part.render_body()  # everything after the blank line
"""

from __future__ import annotations

import base64
import quopri
from dataclasses import dataclass, field

from gwsmail.mail.encoding import content_disposition_filename, is_ascii, normalize_crlf
from gwsmail.mail.identifiers import random_boundary
from gwsmail.mail.models import Header, MailAttachment, MailOptions, guess_mime_type


CRLF = "\r\n"

# RFC 5322 hard limit on line length, excluding CRLF
MAX_LINE_OCTETS = 998

BASE64_LINE_LENGTH = 76


@dataclass
class MimePart:
    """
    One node of a MIME tree.

    Leaf parts carry an already transfer-encoded body with CRLF line
    endings. Multipart nodes carry a boundary and children instead.
    """

    headers: list[Header] = field(default_factory=list)
    body: str = ""
    children: list[MimePart] = field(default_factory=list)
    boundary: str = ""

    @property
    def is_multipart(self) -> bool:
        return bool(self.boundary)

    @property
    def content_type(self) -> str:
        for name, value in self.headers:
            if name.lower() == "content-type":
                return value
        return ""

    def render_body(self) -> str:
        if not self.is_multipart:
            return self.body
        chunks = []
        for child in self.children:
            chunks.append(f"--{self.boundary}{CRLF}")
            chunks.append(child.render())
        chunks.append(f"--{self.boundary}--{CRLF}")
        return "".join(chunks)

    def render(self) -> str:
        header_block = "".join(f"{name}: {value}{CRLF}" for name, value in self.headers)
        return header_block + CRLF + self.render_body()


def _needs_quoted_printable(text: str) -> bool:
    if not is_ascii(text):
        return True
    return any(len(line) > MAX_LINE_OCTETS for line in text.split(CRLF))


def _terminate(payload: str) -> str:
    if payload.endswith(CRLF):
        return payload
    return payload + CRLF


def text_part(content: str, subtype: str) -> MimePart:
    """Build a text/<subtype> leaf, picking 7bit or quoted-printable."""
    text = normalize_crlf(content)
    if _needs_quoted_printable(text):
        encoded = quopri.encodestring(text.replace(CRLF, "\n").encode("utf-8"))
        payload = normalize_crlf(encoded.decode("ascii"))
        transfer_encoding = "quoted-printable"
    else:
        payload = text
        transfer_encoding = "7bit"

    return MimePart(
        headers=[
            ("Content-Type", f"text/{subtype}; charset=utf-8"),
            ("Content-Transfer-Encoding", transfer_encoding),
        ],
        body=_terminate(payload),
    )


def attachment_part(attachment: MailAttachment) -> MimePart:
    """Build a base64 attachment leaf."""
    encoded = base64.b64encode(attachment.data).decode("ascii")
    lines = [
        encoded[i:i + BASE64_LINE_LENGTH]
        for i in range(0, len(encoded), BASE64_LINE_LENGTH)
    ]
    mime_type = attachment.mime_type or guess_mime_type(attachment.filename)

    return MimePart(
        headers=[
            ("Content-Type", mime_type),
            ("Content-Transfer-Encoding", "base64"),
            (
                "Content-Disposition",
                f"attachment; {content_disposition_filename(attachment.filename)}",
            ),
        ],
        body="".join(line + CRLF for line in lines),
    )


def multipart(subtype: str, children: list[MimePart]) -> MimePart:
    """
    Wrap children in a multipart/<subtype> container.

    The boundary is regenerated until it occurs nowhere in the rendered
    children, which also keeps it distinct from every nested boundary.
    """
    rendered = "".join(child.render() for child in children)
    boundary = random_boundary()
    while boundary in rendered:
        boundary = random_boundary()

    return MimePart(
        headers=[("Content-Type", f'multipart/{subtype}; boundary="{boundary}"')],
        children=children,
        boundary=boundary,
    )


def build_mime_body(options: MailOptions) -> MimePart:
    """Choose and build the MIME structure for the given options."""
    content: MimePart | None = None
    if options.body and options.body_html:
        content = multipart(
            "alternative",
            [text_part(options.body, "plain"), text_part(options.body_html, "html")],
        )
    elif options.body_html:
        content = text_part(options.body_html, "html")
    elif options.body:
        content = text_part(options.body, "plain")

    if not options.attachments:
        return content or text_part("", "plain")

    parts = [content] if content else []
    parts.extend(attachment_part(a) for a in options.attachments)
    return multipart("mixed", parts)
