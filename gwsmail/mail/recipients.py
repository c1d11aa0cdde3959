"""Reply-all recipient computation."""

from __future__ import annotations

from gwsmail.mail.addresses import deduplicate_addresses, filter_out_self, parse_email_addresses
from gwsmail.mail.models import ReplyInfo


def build_reply_all_recipients(info: ReplyInfo, self_email: str) -> tuple[list[str], list[str]]:
    """
    Compute (to, cc) for a reply-all.

    The original Reply-To wins over From as the primary recipient (RFC 5322
    section 3.6.2). The local user is removed from both lists and any
    address already in To is dropped from Cc.
    """
    sender = info.reply_to_addr if info.reply_to_addr.strip() else info.from_addr

    to = deduplicate_addresses(
        filter_out_self(parse_email_addresses(sender) + list(info.to_addrs), self_email)
    )

    in_to = {a.lower() for a in to}
    cc = [
        a
        for a in deduplicate_addresses(filter_out_self(info.cc_addrs, self_email))
        if a.lower() not in in_to
    ]
    return to, cc
