#!/usr/bin/env python3
"""
IMAP Mailbox

Fetches notification emails over IMAP (SSL) and marks them read once their
transaction is recorded. With Gmail search enabled, queries use the
X-GM-RAW extension so the same expressions work as in the Gmail web UI
("from:smbc.co.jp subject:三井住友銀行 is:unread").
"""

import email
import email.header
import email.message
import email.utils
import imaplib
import logging
import re
from datetime import datetime

from ..core.config import MailboxConfig
from ..core.models import RawMessage
from . import MailboxError, MessageQuery

logger = logging.getLogger(__name__)

_FLAGS = re.compile(rb"FLAGS \(([^)]*)\)")


class ImapMailbox:
    """
    Mailbox backed by an IMAP server.

    Messages are fetched with BODY.PEEK[] so reading them does not set the
    \\Seen flag; only mark_processed() does.
    """

    def __init__(self, config: MailboxConfig):
        self.config = config
        self.connection: imaplib.IMAP4_SSL | None = None

    def __enter__(self) -> "ImapMailbox":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    def connect(self) -> None:
        """
        Connect, log in and select the configured folder.

        Raises:
            MailboxError: If the server cannot be reached or rejects the login
        """
        if self.connection:
            return

        if not self.config.username or not self.config.password:
            raise MailboxError("Mailbox credentials are not configured")

        try:
            logger.info(f"Connecting to IMAP server: {self.config.imap_server}:{self.config.imap_port}")
            connection = imaplib.IMAP4_SSL(
                self.config.imap_server, self.config.imap_port, timeout=self.config.timeout
            )
            connection.login(self.config.username, self.config.password)
            result, _ = connection.select(self.config.folder)
            if result != "OK":
                connection.logout()
                raise MailboxError(f"Cannot select folder {self.config.folder!r}")
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"Failed to connect to IMAP server: {e}") from e

        self.connection = connection
        logger.info("Successfully connected to IMAP server")

    def disconnect(self) -> None:
        """Disconnect from IMAP server."""
        if self.connection:
            try:
                self.connection.close()
                self.connection.logout()
                logger.info("Disconnected from IMAP server")
            except (imaplib.IMAP4.error, OSError) as e:
                logger.warning(f"Error during disconnect: {e}")
            finally:
                self.connection = None

    def _require_connection(self) -> imaplib.IMAP4_SSL:
        if not self.connection:
            self.connect()
        if self.connection is None:
            raise MailboxError("Not connected to IMAP server")
        return self.connection

    def _search_uids(self, query: MessageQuery) -> list[bytes]:
        connection = self._require_connection()
        try:
            if self.config.gmail_search:
                connection.literal = query.query.encode("utf-8")
                result, data = connection.uid("SEARCH", "CHARSET", "UTF-8", "X-GM-RAW")
            else:
                result, data = connection.uid("SEARCH", "UNSEEN", query.query)
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"Search failed for {query.query!r}: {e}") from e

        if result != "OK":
            raise MailboxError(f"Search failed for {query.query!r}: {result}")
        if not data or not data[0]:
            return []
        return data[0].split()

    def search(self, query: MessageQuery) -> list[RawMessage]:
        """
        Unread messages matching the query, oldest first.

        Only the newest `max_items` hits are fetched. A message that cannot be
        fetched or decoded is skipped with a warning and stays unread.

        Raises:
            MailboxError: If the search itself fails
        """
        uids = self._search_uids(query)
        if len(uids) > query.max_items:
            logger.info(f"{len(uids)} messages match {query.query!r}, processing newest {query.max_items}")
            uids = uids[-query.max_items :]

        messages = []
        for uid in uids:
            try:
                message = self._fetch_message(uid.decode())
            except (imaplib.IMAP4.error, OSError, ValueError) as e:
                logger.warning(f"Error fetching message {uid.decode()}: {e}")
                continue
            if message and message.unread:
                messages.append(message)

        logger.info(f"Found {len(messages)} unread messages for {query.query!r}")
        return messages

    def _fetch_message(self, uid: str) -> RawMessage | None:
        connection = self._require_connection()
        result, msg_data = connection.uid("FETCH", uid, "(FLAGS BODY.PEEK[])")
        if result != "OK" or not msg_data or not isinstance(msg_data[0], tuple):
            logger.warning(f"Unexpected FETCH response for message {uid}")
            return None

        meta, raw_email = msg_data[0][0], msg_data[0][1]
        if not isinstance(raw_email, bytes):
            logger.warning(f"Expected bytes but got {type(raw_email)}")
            return None

        flags_match = _FLAGS.search(meta) or next(
            (_FLAGS.search(part) for part in msg_data[1:] if isinstance(part, bytes)), None
        )
        flags = flags_match.group(1) if flags_match else b""

        msg = email.message_from_bytes(raw_email)
        subject = self._decode_header(msg.get("Subject", ""))
        sender = self._decode_header(msg.get("From", ""))
        message_id = (msg.get("Message-ID") or "").strip()

        try:
            received_at = email.utils.parsedate_to_datetime(msg.get("Date", ""))
        except (TypeError, ValueError):
            received_at = datetime.now()

        html_content, text_content = self._extract_email_content(msg)

        return RawMessage(
            message_id=message_id,
            subject=subject,
            sender=sender,
            received_at=received_at,
            text_content=text_content,
            html_content=html_content,
            unread=b"\\Seen" not in flags,
            uid=uid,
            folder=self.config.folder,
            metadata={"size": len(raw_email)},
        )

    def mark_processed(self, message: RawMessage) -> None:
        """
        Set \\Seen on the message.

        Raises:
            MailboxError: If the server rejects the flag update
        """
        if message.uid is None:
            logger.warning(f"Cannot mark message without UID as read: {message.subject!r}")
            return

        connection = self._require_connection()
        try:
            result, _ = connection.uid("STORE", message.uid, "+FLAGS", "(\\Seen)")
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"Failed to mark message {message.uid} as read: {e}") from e
        if result != "OK":
            raise MailboxError(f"Failed to mark message {message.uid} as read: {result}")

        message.unread = False
        logger.debug(f"Marked message {message.uid} as read")

    def _extract_email_content(self, msg: email.message.Message) -> tuple[str | None, str | None]:
        """Extract HTML and text content from email message."""
        html_content = None
        text_content = None

        parts = msg.walk() if msg.is_multipart() else [msg]
        for part in parts:
            if "attachment" in str(part.get("Content-Disposition", "")):
                continue

            content_type = part.get_content_type()
            if content_type not in ("text/html", "text/plain"):
                continue

            payload = part.get_payload(decode=True)
            if not payload or not isinstance(payload, bytes):
                continue

            charset = part.get_content_charset() or "utf-8"
            try:
                content = payload.decode(charset, errors="ignore")
            except LookupError:
                content = payload.decode("utf-8", errors="ignore")

            if content_type == "text/html" and html_content is None:
                html_content = content
            elif content_type == "text/plain" and text_content is None:
                text_content = content

        return html_content, text_content

    def _decode_header(self, header: str) -> str:
        """Decode email header with proper encoding handling."""
        if not header:
            return ""

        try:
            decoded_parts = []
            for part, encoding in email.header.decode_header(header):
                if isinstance(part, bytes):
                    decoded_parts.append(part.decode(encoding or "utf-8", errors="ignore"))
                else:
                    decoded_parts.append(str(part))
            return "".join(decoded_parts)
        except (LookupError, ValueError) as e:
            logger.warning(f"Error decoding header {header}: {e}")
            return header
