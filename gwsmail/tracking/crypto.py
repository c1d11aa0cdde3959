"""
Tool: Tracking Payload Crypto
Purpose: Encrypt tracking pixel payloads with AES-256-GCM

Blob layout: base64url(nonce[12] + ciphertext + tag), without padding.

Dependencies:
    - cryptography (pip install cryptography)
"""

from __future__ import annotations

import base64
import binascii
import json
import secrets
from dataclasses import asdict, dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from gwsmail.tracking import TrackingError


NONCE_BYTES = 12  # 96-bit nonce for GCM
KEY_BYTES = 32


@dataclass
class PixelPayload:
    """Encrypted into the pixel URL; short keys keep the URL small."""

    r: str  # recipient
    s: str  # subject hash
    t: int  # sent at, unix seconds


def _decode_key(key_b64: str) -> bytes:
    try:
        key = base64.b64decode(key_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TrackingError(f"decode key: {e}") from e
    if len(key) not in (16, 24, 32):
        raise TrackingError(f"invalid key length: {len(key)} bytes")
    return key


def generate_key() -> str:
    """Generate a new 256-bit AES key as standard base64."""
    return base64.b64encode(secrets.token_bytes(KEY_BYTES)).decode("ascii")


def encrypt_payload(payload: PixelPayload, key_b64: str) -> str:
    """Encrypt a payload into a URL-safe blob."""
    aesgcm = AESGCM(_decode_key(key_b64))
    plaintext = json.dumps(asdict(payload), separators=(",", ":")).encode()
    nonce = secrets.token_bytes(NONCE_BYTES)
    ciphertext = aesgcm.encrypt(nonce, plaintext, None)
    return base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii").rstrip("=")


def decrypt_payload(blob: str, key_b64: str) -> PixelPayload:
    """Decrypt a blob produced by encrypt_payload."""
    aesgcm = AESGCM(_decode_key(key_b64))
    try:
        raw = base64.urlsafe_b64decode(blob + "=" * (-len(blob) % 4))
    except (binascii.Error, ValueError) as e:
        raise TrackingError(f"decode blob: {e}") from e
    if len(raw) <= NONCE_BYTES:
        raise TrackingError("ciphertext too short")

    try:
        plaintext = aesgcm.decrypt(raw[:NONCE_BYTES], raw[NONCE_BYTES:], None)
    except InvalidTag as e:
        raise TrackingError("decrypt: authentication failed") from e

    try:
        data = json.loads(plaintext)
        return PixelPayload(r=data["r"], s=data["s"], t=int(data["t"]))
    except (ValueError, KeyError, TypeError) as e:
        raise TrackingError(f"unmarshal payload: {e}") from e
