"""
Tool: Address Helpers
Purpose: Parse, filter and format email addresses found in header values

Usage:
    from gwsmail.mail.addresses import parse_email_addresses

    parse_email_addresses('"Alice" <Alice@Example.com>, bob@example.com')
    # -> ["alice@example.com", "bob@example.com"]

Splitting is done on top-level commas only. A display name that contains a
comma inside quotes ("Smith, Alice" <a@example.com>) is split incorrectly;
this matches what the Gmail web client sends in practice and is accepted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from gwsmail.mail.encoding import encode_header_if_needed, is_ascii


_ANGLE_ADDR = re.compile(r"^(.*?)\s*<([^<>]*)>\s*$")

# Trailing RFC 5322 comment, e.g. "a@example.com (Alice)"
_TRAILING_COMMENT = re.compile(r"\s*\([^()]*\)\s*$")

# local@domain with none of the characters that delimit address syntax
_BARE_ADDR = re.compile(r"^[^\s@<>()\[\]\\,;:\"]+@[^\s@<>()\[\]\\,;:\"]+$")


def split_address_entry(entry: str) -> tuple[str, str]:
    """
    Split a single 'Name <addr>' or 'addr' entry into (name, address).

    The name has surrounding quotes removed and a trailing (comment) is
    ignored. Either part may be ''.
    """
    entry = _TRAILING_COMMENT.sub("", entry.strip())
    match = _ANGLE_ADDR.match(entry)
    if match:
        name = match.group(1).strip()
        if len(name) >= 2 and name[0] == name[-1] == '"':
            name = name[1:-1]
        return name, match.group(2).strip()
    return "", entry


def parse_email_addresses(value: str | None) -> list[str]:
    """
    Extract bare, lowercased addresses from a header-style string.

    Order is preserved and duplicates are kept. Entries that do not reduce
    to a clean local@domain (group syntax, stray punctuation) are dropped.
    """
    if not value or not value.strip():
        return []

    addresses = []
    for entry in value.split(","):
        _, address = split_address_entry(entry)
        address = address.strip()
        if not _BARE_ADDR.match(address):
            continue
        addresses.append(address.lower())
    return addresses


def filter_out_self(addresses: Iterable[str] | None, self_email: str) -> list[str]:
    """Remove the local user's address (case-insensitive)."""
    me = self_email.strip().lower()
    return [a for a in addresses or [] if a.strip().lower() != me]


def deduplicate_addresses(addresses: Iterable[str] | None) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for address in addresses or []:
        key = address.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(address)
    return result


def extract_domain(address: str) -> str:
    """
    Return the domain of '[Name] <local@domain>' or 'local@domain'.

    Returns '' when the value has no usable local@domain form.
    """
    _, bare = split_address_entry(address)
    if bare.count("@") != 1:
        return ""
    local, domain = bare.split("@")
    if not local or not domain or any(c.isspace() for c in bare):
        return ""
    return domain


def format_address(entry: str) -> str:
    """
    Prepare one address entry for a header line.

    A non-ASCII display name is RFC 2047 encoded; everything else passes
    through as written.
    """
    entry = entry.strip()
    name, address = split_address_entry(entry)
    if not name or is_ascii(name):
        return entry
    return f"{encode_header_if_needed(name)} <{address}>"


def format_address_list(entries: Iterable[str]) -> str:
    return ", ".join(format_address(e) for e in entries if e and e.strip())
