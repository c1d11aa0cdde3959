"""
Tool: Gmail Message Store
Purpose: Fetch message and thread metadata from the Gmail API

Implements the MessageStore interface with one aiohttp request per call.
Only metadata is requested (format=metadata), restricted to the headers
reply threading needs.

Usage:
    from gwsmail.providers.gmail_store import GmailMessageStore

    store = GmailMessageStore(access_token)
    message = await store.get_message("18c1f...")
    thread = await store.get_thread("18c1e...")

Dependencies:
    - aiohttp (pip install aiohttp)
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from gwsmail.mail.models import Header, StoredMessage, StoredThread
from gwsmail.providers.base import MessageStore, MessageStoreError


logger = logging.getLogger(__name__)

# Google API endpoints
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"

REPLY_METADATA_HEADERS = (
    "Message-ID",
    "References",
    "From",
    "Reply-To",
    "To",
    "Cc",
    "Subject",
)


def _parse_headers(payload: dict[str, Any]) -> list[Header]:
    headers = []
    for item in payload.get("headers") or []:
        name = item.get("name")
        value = item.get("value")
        if isinstance(name, str) and isinstance(value, str):
            headers.append((name, value))
    return headers


def _parse_internal_date(value: Any) -> int:
    # The API encodes int64 fields as JSON strings
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_gmail_message(data: dict[str, Any]) -> StoredMessage:
    """Parse a Gmail API message resource into a StoredMessage."""
    return StoredMessage(
        id=data.get("id", ""),
        thread_id=data.get("threadId", ""),
        internal_date=_parse_internal_date(data.get("internalDate")),
        headers=_parse_headers(data.get("payload") or {}),
    )


def parse_gmail_thread(data: dict[str, Any]) -> StoredThread:
    """Parse a Gmail API thread resource into a StoredThread."""
    messages = [
        parse_gmail_message(m) if m else None
        for m in data.get("messages") or []
    ]
    return StoredThread(id=data.get("id", ""), messages=messages)


class GmailMessageStore(MessageStore):
    """
    Gmail-backed message store.

    An existing aiohttp.ClientSession may be passed in; otherwise a
    short-lived session is opened per request.
    """

    def __init__(
        self,
        access_token: str,
        session: aiohttp.ClientSession | None = None,
        api_base: str = GMAIL_API_BASE,
    ):
        self.access_token = access_token
        self.api_base = api_base.rstrip("/")
        self._session = session

    @property
    def provider_name(self) -> str:
        return "google"

    def _get_headers(self) -> dict[str, str]:
        """Get authorization headers for API requests."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    async def _make_request(self, url: str, params: list[tuple[str, str]] | None = None) -> dict[str, Any]:
        """
        Make one authenticated GET request.

        Returns:
            Decoded JSON body

        Raises:
            MessageStoreError: on any non-200 response
        """
        if self._session is not None:
            return await self._request(self._session, url, params)
        async with aiohttp.ClientSession() as session:
            return await self._request(session, url, params)

    async def _request(
        self,
        session: aiohttp.ClientSession,
        url: str,
        params: list[tuple[str, str]] | None,
    ) -> dict[str, Any]:
        logger.debug("GET %s", url)
        async with session.get(url, headers=self._get_headers(), params=params) as resp:
            return await self._handle_response(resp)

    async def _handle_response(self, resp) -> dict[str, Any]:
        """Handle API response."""
        try:
            data = await resp.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.status == 200:
            return data
        if resp.status == 401:
            message = "Authentication failed - token may be expired"
        elif resp.status == 403:
            message = "Permission denied - insufficient scopes"
        elif resp.status == 404:
            message = "Resource not found"
        else:
            error = data.get("error")
            message = error.get("message") if isinstance(error, dict) else None
            message = message or f"HTTP {resp.status}"
        raise MessageStoreError(message, status=resp.status)

    def _metadata_params(self) -> list[tuple[str, str]]:
        params = [("format", "metadata")]
        params.extend(("metadataHeaders", name) for name in REPLY_METADATA_HEADERS)
        return params

    async def get_message(self, message_id: str) -> StoredMessage:
        """Get a single message's reply metadata."""
        url = f"{self.api_base}/users/me/messages/{message_id}"
        data = await self._make_request(url, params=self._metadata_params())
        return parse_gmail_message(data)

    async def get_thread(self, thread_id: str) -> StoredThread:
        """Get reply metadata for every message in a thread."""
        url = f"{self.api_base}/users/me/threads/{thread_id}"
        data = await self._make_request(url, params=self._metadata_params())
        return parse_gmail_thread(data)

    async def get_profile_email(self) -> str:
        """Get the authenticated account's address."""
        url = f"{self.api_base}/users/me/profile"
        data = await self._make_request(url)
        return data.get("emailAddress", "")
