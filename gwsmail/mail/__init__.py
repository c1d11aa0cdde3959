"""Mail Tools — Compose outbound messages and resolve reply threading

Components:
    models.py: MailOptions, MailAttachment, ReplyInfo, stored message records
    addresses.py: Address parsing, self-filtering, de-duplication
    encoding.py: RFC 2047 / RFC 2231 encoders, CRLF normalization
    identifiers.py: Message-ID and MIME boundary generation
    mime.py: MIME part tree construction
    composer.py: Final RFC 5322 message assembly
    recipients.py: Reply-all recipient computation
    reply.py: In-Reply-To / References / thread resolution
    send.py: Reply application and Gmail send payload
"""

from gwsmail.mail.composer import build_rfc822
from gwsmail.mail.encoding import HeaderInjectionError
from gwsmail.mail.models import MailAttachment, MailOptions, ReplyInfo
from gwsmail.mail.recipients import build_reply_all_recipients
from gwsmail.mail.reply import fetch_reply_info, reply_headers, select_latest_thread_message


__all__ = [
    "HeaderInjectionError",
    "MailAttachment",
    "MailOptions",
    "ReplyInfo",
    "build_reply_all_recipients",
    "build_rfc822",
    "fetch_reply_info",
    "reply_headers",
    "select_latest_thread_message",
]
