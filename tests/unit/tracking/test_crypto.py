"""Tests for gwsmail/tracking/crypto.py"""

import base64

import pytest

from gwsmail.tracking import TrackingError
from gwsmail.tracking.crypto import PixelPayload, decrypt_payload, encrypt_payload, generate_key


class TestGenerateKey:
    def test_is_256_bit_base64(self):
        assert len(base64.b64decode(generate_key())) == 32

    def test_unique(self):
        assert generate_key() != generate_key()


class TestEncryptPayload:
    """AES-GCM pixel payloads."""

    def test_decrypts_to_same_payload(self, tracking_key):
        payload = PixelPayload(r="c@d.com", s="abc123", t=1700000000)
        blob = encrypt_payload(payload, tracking_key)

        assert decrypt_payload(blob, tracking_key) == payload

    def test_blob_is_url_safe_without_padding(self, tracking_key):
        blob = encrypt_payload(PixelPayload(r="c@d.com", s="abc123", t=1), tracking_key)

        assert "=" not in blob
        assert "+" not in blob
        assert "/" not in blob

    def test_random_nonce(self, tracking_key):
        payload = PixelPayload(r="c@d.com", s="abc123", t=1)
        assert encrypt_payload(payload, tracking_key) != encrypt_payload(payload, tracking_key)

    @pytest.mark.parametrize("key", ["not base64!", base64.b64encode(b"short").decode()])
    def test_bad_key(self, key):
        with pytest.raises(TrackingError):
            encrypt_payload(PixelPayload(r="x", s="y", t=0), key)

    def test_128_bit_key_accepted(self):
        key = base64.b64encode(b"k" * 16).decode()
        blob = encrypt_payload(PixelPayload(r="x", s="y", t=0), key)
        assert decrypt_payload(blob, key).r == "x"


class TestDecryptPayload:
    def test_wrong_key(self, tracking_key):
        blob = encrypt_payload(PixelPayload(r="x", s="y", t=0), tracking_key)
        with pytest.raises(TrackingError, match="authentication failed"):
            decrypt_payload(blob, generate_key())

    def test_too_short(self, tracking_key):
        with pytest.raises(TrackingError, match="ciphertext too short"):
            decrypt_payload("AAAA", tracking_key)

    def test_tampered(self, tracking_key):
        blob = encrypt_payload(PixelPayload(r="x", s="y", t=0), tracking_key)
        tampered = blob[:-2] + ("A" if blob[-2] != "A" else "B") + blob[-1]
        with pytest.raises(TrackingError):
            decrypt_payload(tampered, tracking_key)
