"""
Tool: Message Store Base
Purpose: Abstract interface the reply resolver fetches message metadata from

Keeps the reply-threading logic independent of how messages are fetched.
Any store that can return a message by id and a thread by id will do.

Usage:
    from gwsmail.providers.base import MessageStore
    from gwsmail.providers.gmail_store import GmailMessageStore

    store = GmailMessageStore(access_token)
    message = await store.get_message("18c1f...")
"""

from abc import ABC, abstractmethod

from gwsmail.mail.models import StoredMessage, StoredThread


class MessageStoreError(RuntimeError):
    """A message store request did not succeed."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class MessageStore(ABC):
    """
    Abstract base class for message stores.

    Implementations make exactly one request per call and raise on failure;
    retries are the caller's concern.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (e.g., 'google')."""
        pass

    @abstractmethod
    async def get_message(self, message_id: str) -> StoredMessage:
        """
        Fetch a message's metadata.

        Args:
            message_id: Provider-specific message ID

        Returns:
            StoredMessage with thread id, internal date and headers
        """
        pass

    @abstractmethod
    async def get_thread(self, thread_id: str) -> StoredThread:
        """
        Fetch all messages of a thread.

        Args:
            thread_id: Provider-specific thread ID

        Returns:
            StoredThread whose messages may include None entries
        """
        pass
