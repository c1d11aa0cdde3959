"""Message-ID and MIME boundary generation."""

from __future__ import annotations

import secrets

from gwsmail.mail.addresses import extract_domain


# Used when the sender address has no usable domain
FALLBACK_DOMAIN = "gwsmail.local"

# 18 random bytes -> 24 URL-safe characters [A-Za-z0-9_-]
MESSAGE_ID_TOKEN_BYTES = 18
BOUNDARY_TOKEN_BYTES = 16


def random_message_id(from_address: str) -> str:
    """Return a fresh '<token@domain>' identifier for the given sender."""
    domain = extract_domain(from_address) or FALLBACK_DOMAIN
    return f"<{secrets.token_urlsafe(MESSAGE_ID_TOKEN_BYTES)}@{domain}>"


def random_boundary() -> str:
    """
    Return a new MIME boundary token.

    The '=_' prefix cannot occur in quoted-printable or base64 output.
    """
    return "=_" + secrets.token_hex(BOUNDARY_TOKEN_BYTES)
