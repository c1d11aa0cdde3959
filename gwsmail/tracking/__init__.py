"""Open tracking — hidden pixel embedded in outgoing HTML mail

The pixel URL carries an AES-GCM encrypted payload (recipient, subject
hash, send time) that only the tracking worker can read.

Components:
    crypto.py: Payload encryption and key generation
    pixel.py: Pixel URL/HTML generation and injection into MailOptions
"""


class TrackingError(RuntimeError):
    """Tracking is misconfigured or cannot be applied to this message."""
