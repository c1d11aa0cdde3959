"""
Tool: Header Encoding
Purpose: RFC 2047 / RFC 2231 encoders, CRLF normalization, injection guard

Usage:
    from gwsmail.mail.encoding import encode_header_if_needed, normalize_crlf

    encode_header_if_needed("Grüße")            # '=?utf-8?b?R3LDvMOfZQ==?='
    content_disposition_filename("Grüße.txt")   # "filename*=UTF-8''Gr%C3%BC%C3%9Fe.txt"
    normalize_crlf("a\\nb\\rc")                   # 'a\\r\\nb\\r\\nc'
"""

from __future__ import annotations

import re
from email.header import Header
from typing import AnyStr
from urllib.parse import quote


# RFC 2231 attribute-char set minus the unreserved characters quote() keeps
_RFC2231_SAFE = "!#$&+^`|"

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")
_LINE_BREAKS_BYTES = re.compile(rb"\r\n|\r|\n")


class HeaderInjectionError(ValueError):
    """A header-bound value contained a raw CR or LF."""

    def __init__(self, header: str, value: str):
        self.header = header
        self.value = value
        super().__init__(f"invalid {header} header value: contains line break")


def is_ascii(value: str) -> bool:
    return all(ord(c) < 128 for c in value)


def encode_header_if_needed(value: str) -> str:
    """
    Return value unchanged if it is 7-bit ASCII, else RFC 2047 encoded words.

    Long values are folded into several encoded words separated by CRLF +
    space, each within the 75 character limit.
    """
    if is_ascii(value):
        return value
    return Header(value, charset="utf-8").encode(linesep="\r\n")


def content_disposition_filename(name: str) -> str:
    """
    Build the filename parameter of a Content-Disposition header.

    ASCII names use the quoted form; anything else uses only the RFC 2231
    extended form.
    """
    if is_ascii(name):
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        return f'filename="{escaped}"'
    return "filename*=UTF-8''" + quote(name, safe=_RFC2231_SAFE, encoding="utf-8")


def normalize_crlf(value: AnyStr) -> AnyStr:
    """Convert every line terminator variant to CRLF. Idempotent."""
    if isinstance(value, bytes):
        return _LINE_BREAKS_BYTES.sub(b"\r\n", value)
    return _LINE_BREAKS.sub("\r\n", value)


def ensure_no_line_breaks(header: str, value: str) -> str:
    """Reject header-bound values carrying CR or LF."""
    if "\r" in value or "\n" in value:
        raise HeaderInjectionError(header, value)
    return value
