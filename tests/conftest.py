"""Shared test fixtures for gwsmail tests.

This module provides common fixtures used across all test modules:
- An in-memory message store with a few canned messages and threads
- Standard MailOptions
- Tracking configuration with a throwaway key

Usage:
    async def test_something(message_store):
        info = await fetch_reply_info(message_store, "m1")
"""

import asyncio
import base64
import logging
from email import policy
from email.parser import BytesParser
from pathlib import Path

import pytest

from gwsmail.config_models import TrackingConfig
from gwsmail.mail.models import MailOptions, StoredMessage, StoredThread
from gwsmail.providers.base import MessageStore, MessageStoreError


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
SAMPLE_CONFIG = PROJECT_ROOT / "args" / "gwsmail.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Message Store Fixtures
# ─────────────────────────────────────────────────────────────────────────────


class InMemoryMessageStore(MessageStore):
    """MessageStore backed by dicts; records every id it was asked for."""

    def __init__(self, messages=None, threads=None):
        self.messages = messages or {}
        self.threads = threads or {}
        self.profile_email = ""
        self.calls: list[tuple[str, str]] = []

    @property
    def provider_name(self) -> str:
        return "memory"

    async def get_message(self, message_id: str) -> StoredMessage:
        self.calls.append(("message", message_id))
        if message_id not in self.messages:
            raise MessageStoreError("Resource not found", status=404)
        return self.messages[message_id]

    async def get_profile_email(self) -> str:
        self.calls.append(("profile", ""))
        return self.profile_email

    async def get_thread(self, thread_id: str) -> StoredThread:
        self.calls.append(("thread", thread_id))
        if thread_id not in self.threads:
            raise MessageStoreError("Resource not found", status=404)
        return self.threads[thread_id]


class BlockingMessageStore(MessageStore):
    """MessageStore whose fetches never complete until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    @property
    def provider_name(self) -> str:
        return "blocking"

    async def _block(self):
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise

    async def get_message(self, message_id: str) -> StoredMessage:
        await self._block()

    async def get_thread(self, thread_id: str) -> StoredThread:
        await self._block()


@pytest.fixture
def blocking_store() -> BlockingMessageStore:
    return BlockingMessageStore()


@pytest.fixture
def stored_messages() -> dict:
    """Canned messages keyed by id.

    Returns:
        dict of message id -> StoredMessage
    """
    return {
        "m1": StoredMessage(
            id="m1",
            thread_id="t1",
            internal_date=1000,
            headers=[
                ("Message-ID", "<id1@example.com>"),
                ("From", "sender@example.com"),
                ("To", "alice@example.com, bob@example.com"),
                ("Cc", "charlie@example.com"),
            ],
        ),
        "m2": StoredMessage(
            id="m2",
            thread_id="t2",
            internal_date=2000,
            headers=[
                ("Message-Id", "<id2@example.com>"),
                ("References", "<ref@example.com>"),
                ("From", '"Sender Name" <sender@example.com>'),
                ("To", "recipient@example.com"),
            ],
        ),
        "m3": StoredMessage(
            id="m3",
            thread_id="t3",
            headers=[
                ("Message-ID", "<id3@example.com>"),
                ("From", "original-sender@example.com"),
                ("Reply-To", "Mailing List <list@example.com>"),
                ("To", "recipient@example.com"),
            ],
        ),
    }


@pytest.fixture
def message_store(stored_messages: dict) -> InMemoryMessageStore:
    """Store holding stored_messages plus thread t1 with two messages."""
    thread = StoredThread(
        id="t1",
        messages=[
            StoredMessage(
                id="t1-a",
                thread_id="t1",
                internal_date=1000,
                headers=[
                    ("Message-ID", "<id1@example.com>"),
                    ("From", "sender@example.com"),
                ],
            ),
            StoredMessage(
                id="t1-b",
                thread_id="t1",
                internal_date=2000,
                headers=[
                    ("Message-ID", "<id2@example.com>"),
                    ("From", "sender2@example.com"),
                    ("To", "me@example.com"),
                ],
            ),
        ],
    )
    empty = StoredThread(id="t-empty", messages=[None])
    return InMemoryMessageStore(stored_messages, {"t1": thread, "t-empty": empty})


# ─────────────────────────────────────────────────────────────────────────────
# Composition Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def basic_options() -> MailOptions:
    """Minimal plain-text message."""
    return MailOptions(
        from_addr="a@b.com",
        to=["c@d.com"],
        subject="Hi",
        body="Hello",
    )


@pytest.fixture
def parse_raw():
    """Parse composed bytes with the stdlib parser (modern policy)."""

    def _parse(raw: bytes):
        return BytesParser(policy=policy.default).parsebytes(raw)

    return _parse


# ─────────────────────────────────────────────────────────────────────────────
# Tracking Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def tracking_key() -> str:
    """A fixed 256-bit key so failures are reproducible."""
    return base64.b64encode(bytes(range(32))).decode("ascii")


@pytest.fixture
def tracking_config(tracking_key: str) -> TrackingConfig:
    return TrackingConfig(
        enabled=True,
        worker_url="https://track.example.com",
        tracking_key=tracking_key,
        admin_key="admin",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Logging Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def restore_root_logging():
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# ─────────────────────────────────────────────────────────────────────────────
# Config Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_config_path() -> Path:
    """The config file shipped in args/."""
    return SAMPLE_CONFIG


@pytest.fixture
def config_file(tmp_path, monkeypatch) -> Path:
    """Empty config location under tmp_path; GWSMAIL_CONFIG is cleared."""
    monkeypatch.delenv("GWSMAIL_CONFIG", raising=False)
    return tmp_path / "gwsmail.yaml"
