"""
Mailbox Package

The pipeline's view of the notification mailbox: a search returning unread
messages and an idempotent "mark processed" operation.
"""

from dataclasses import dataclass
from typing import Protocol

from ..core.models import RawMessage


class MailboxError(Exception):
    """The mailbox could not be reached or refused an operation."""


@dataclass(frozen=True)
class MessageQuery:
    """A provider search expression and the maximum number of messages to return."""

    query: str
    max_items: int = 20


class Mailbox(Protocol):
    """Source of notification messages."""

    def search(self, query: MessageQuery) -> list[RawMessage]:
        """Unread messages matching the query, at most query.max_items of them."""
        ...

    def mark_processed(self, message: RawMessage) -> None:
        """Mark a message read. Marking an already-read message is a no-op."""
        ...


from .imap import ImapMailbox  # noqa: E402
from .processed import ProcessedMessageStore  # noqa: E402

__all__ = [
    "ImapMailbox",
    "Mailbox",
    "MailboxError",
    "MessageQuery",
    "ProcessedMessageStore",
    "RawMessage",
]
