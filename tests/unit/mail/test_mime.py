"""Tests for gwsmail/mail/mime.py

Parts are checked structurally and then, where it matters, parsed back with
the stdlib email parser to make sure real clients would read them.
"""

import base64
import quopri

import pytest

from gwsmail.mail import mime
from gwsmail.mail.mime import (
    CRLF,
    attachment_part,
    build_mime_body,
    multipart,
    text_part,
)
from gwsmail.mail.models import MailAttachment, MailOptions


def _options(**kwargs) -> MailOptions:
    return MailOptions(from_addr="a@b.com", to=["c@d.com"], **kwargs)


def _header(part, name):
    for key, value in part.headers:
        if key.lower() == name.lower():
            return value
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Leaf Part Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestTextPart:
    def test_ascii_is_7bit(self):
        part = text_part("Hello", "plain")

        assert part.content_type == "text/plain; charset=utf-8"
        assert _header(part, "Content-Transfer-Encoding") == "7bit"
        assert part.body == "Hello\r\n"

    def test_line_endings_normalized(self):
        part = text_part("one\ntwo\rthree", "plain")
        assert part.body == "one\r\ntwo\r\nthree\r\n"

    def test_existing_trailing_crlf_not_doubled(self):
        assert text_part("Hello\r\n", "plain").body == "Hello\r\n"

    def test_non_ascii_is_quoted_printable(self):
        part = text_part("Grüße", "html")

        assert part.content_type == "text/html; charset=utf-8"
        assert _header(part, "Content-Transfer-Encoding") == "quoted-printable"
        assert part.body.isascii()
        assert quopri.decodestring(part.body.encode()).decode("utf-8").rstrip("\r\n") == "Grüße"

    def test_overlong_line_is_quoted_printable(self):
        part = text_part("x" * 1200, "plain")

        assert _header(part, "Content-Transfer-Encoding") == "quoted-printable"
        assert all(len(line) <= 76 for line in part.body.split(CRLF))

    def test_body_has_no_bare_line_feeds(self):
        part = text_part("Grüße\nzweite Zeile\n", "plain")
        assert "\n" not in part.body.replace(CRLF, "")


class TestAttachmentPart:
    def test_base64_body_wrapped_at_76(self):
        data = bytes(range(256)) * 4
        part = attachment_part(MailAttachment("blob.bin", "application/octet-stream", data))

        lines = part.body.split(CRLF)
        assert lines[-1] == ""
        assert all(len(line) <= 76 for line in lines)
        assert base64.b64decode("".join(lines)) == data

    def test_headers(self):
        part = attachment_part(MailAttachment("report.pdf", "application/pdf", b"%PDF"))

        assert part.content_type == "application/pdf"
        assert _header(part, "Content-Transfer-Encoding") == "base64"
        assert _header(part, "Content-Disposition") == 'attachment; filename="report.pdf"'

    def test_non_ascii_filename(self):
        part = attachment_part(MailAttachment("Grüße.txt", "text/plain", b"hi"))
        assert _header(part, "Content-Disposition") == (
            "attachment; filename*=UTF-8''Gr%C3%BC%C3%9Fe.txt"
        )

    def test_missing_mime_type_is_guessed(self):
        part = attachment_part(MailAttachment("photo.png", "", b"\x89PNG"))
        assert part.content_type == "image/png"

    def test_unknown_extension_defaults_to_octet_stream(self):
        part = attachment_part(MailAttachment("data.zzunknown", "", b"x"))
        assert part.content_type == "application/octet-stream"

    def test_empty_data(self):
        part = attachment_part(MailAttachment("empty.txt", "text/plain", b""))
        assert part.body == ""


# ─────────────────────────────────────────────────────────────────────────────
# Multipart Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestMultipart:
    def test_renders_delimiters(self):
        container = multipart("alternative", [text_part("a", "plain"), text_part("b", "html")])
        boundary = container.boundary
        body = container.render_body()

        assert container.content_type == f'multipart/alternative; boundary="{boundary}"'
        assert body.startswith(f"--{boundary}\r\n")
        assert body.count(f"--{boundary}\r\n") == 2
        assert body.endswith(f"--{boundary}--\r\n")

    def test_boundary_regenerated_on_collision(self, monkeypatch):
        tokens = iter(["=_collide", "=_fresh"])
        monkeypatch.setattr(mime, "random_boundary", lambda: next(tokens))

        container = multipart("mixed", [text_part("see =_collide here", "plain")])

        assert container.boundary == "=_fresh"

    def test_nested_boundaries_differ(self):
        options = _options(
            body="plain",
            body_html="<p>html</p>",
            attachments=[MailAttachment("a.txt", "text/plain", b"a")],
        )
        outer = build_mime_body(options)
        inner = outer.children[0]

        assert inner.is_multipart
        assert outer.boundary != inner.boundary
        assert outer.boundary not in inner.render()


# ─────────────────────────────────────────────────────────────────────────────
# Structure Selection Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestBuildMimeBody:
    """The body/attachment combination picks the MIME structure."""

    @pytest.mark.parametrize(
        "kwargs,expected",
        [
            ({"body": "plain"}, "text/plain"),
            ({"body_html": "<p>x</p>"}, "text/html"),
            ({"body": "plain", "body_html": "<p>x</p>"}, "multipart/alternative"),
            ({}, "text/plain"),
        ],
    )
    def test_top_level_type(self, kwargs, expected):
        part = build_mime_body(_options(**kwargs))
        assert part.content_type.startswith(expected)

    def test_alternative_orders_plain_first(self):
        part = build_mime_body(_options(body="plain", body_html="<p>x</p>"))
        types = [child.content_type for child in part.children]
        assert types == ["text/plain; charset=utf-8", "text/html; charset=utf-8"]

    def test_attachments_wrap_in_mixed(self):
        attachments = [
            MailAttachment("one.txt", "text/plain", b"1"),
            MailAttachment("two.txt", "text/plain", b"2"),
        ]
        part = build_mime_body(_options(body="see attached", attachments=attachments))

        assert part.content_type.startswith("multipart/mixed")
        assert len(part.children) == 3
        assert part.children[0].content_type == "text/plain; charset=utf-8"
        dispositions = [_header(c, "Content-Disposition") for c in part.children[1:]]
        assert dispositions == [
            'attachment; filename="one.txt"',
            'attachment; filename="two.txt"',
        ]

    def test_attachments_only(self):
        part = build_mime_body(
            _options(attachments=[MailAttachment("one.txt", "text/plain", b"1")])
        )

        assert part.content_type.startswith("multipart/mixed")
        assert len(part.children) == 1
        assert _header(part.children[0], "Content-Transfer-Encoding") == "base64"
