"""
Tool: Tracking Pixel
Purpose: Generate tracking pixel URLs and embed them in outgoing HTML

Usage:
    from gwsmail.tracking.pixel import inject_tracking_pixel

    options, tracking_id = inject_tracking_pixel(options, config.tracking)
"""

from __future__ import annotations

import hashlib
import re
import time

from gwsmail.config_models import TrackingConfig
from gwsmail.mail.addresses import parse_email_addresses
from gwsmail.mail.models import MailOptions
from gwsmail.tracking import TrackingError
from gwsmail.tracking.crypto import PixelPayload, encrypt_payload


_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)


def hash_subject(subject: str) -> str:
    """First 6 hex characters of the subject's SHA-256."""
    return hashlib.sha256(subject.encode("utf-8")).hexdigest()[:6]


def generate_pixel_url(
    cfg: TrackingConfig,
    recipient: str,
    subject: str,
    sent_at: int | None = None,
) -> tuple[str, str]:
    """
    Build the pixel URL for one recipient.

    Returns:
        (pixel_url, blob) where blob doubles as the tracking id
    """
    if not cfg.is_configured():
        raise TrackingError("tracking not configured")

    payload = PixelPayload(
        r=recipient,
        s=hash_subject(subject),
        t=int(time.time()) if sent_at is None else sent_at,
    )
    blob = encrypt_payload(payload, cfg.tracking_key)
    return f"{cfg.worker_url.rstrip('/')}/p/{blob}.gif", blob


def generate_pixel_html(pixel_url: str) -> str:
    return (
        f'<img src="{pixel_url}" width="1" height="1" '
        'style="display:none;width:1px;height:1px;border:0;" alt="" />'
    )


def inject_tracking_pixel(options: MailOptions, cfg: TrackingConfig) -> tuple[MailOptions, str]:
    """
    Return a copy of options with a tracking pixel in the HTML body.

    The pixel goes right before </body> when present, otherwise at the end.
    Tracking is per recipient, so exactly one recipient is required.
    """
    if not options.body_html:
        raise TrackingError("tracking requires an HTML body")

    recipients = []
    for value in (*options.to, *options.cc, *options.bcc):
        recipients.extend(parse_email_addresses(value))
    if len(recipients) != 1:
        raise TrackingError(f"tracking requires exactly one recipient, got {len(recipients)}")

    pixel_url, tracking_id = generate_pixel_url(cfg, recipients[0], options.subject)
    pixel = generate_pixel_html(pixel_url)

    html = options.body_html
    matches = list(_BODY_CLOSE.finditer(html))
    if matches:
        pos = matches[-1].start()
        html = html[:pos] + pixel + html[pos:]
    else:
        html = html + pixel

    return options.with_changes(body_html=html), tracking_id
