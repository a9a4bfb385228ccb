"""SMTP Email Transport — verifies failure mapping without a real SMTP server."""

import smtplib

import pytest

from docketwatch.core.domain_types import OutgoingEmail
from docketwatch.core.errors import EmailDeliveryError
from docketwatch.infrastructure.email_transport import SmtpEmailTransport

MESSAGE = OutgoingEmail(to="r1@firm.test", subject="URGENT", text="body", html="<p>body</p>")


async def test_missing_host_raises_delivery_error():
    with pytest.raises(EmailDeliveryError, match="not configured"):
        await SmtpEmailTransport(None).send(MESSAGE)


async def test_smtp_failure_mapped(monkeypatch):
    transport = SmtpEmailTransport("smtp.test")

    def refuse(msg):
        raise smtplib.SMTPRecipientsRefused({"r1@firm.test": (550, b"no such user")})

    monkeypatch.setattr(transport, "_send_blocking", refuse)
    with pytest.raises(EmailDeliveryError):
        await transport.send(MESSAGE)


def test_builds_multipart_message():
    msg = SmtpEmailTransport("smtp.test", sender="alerts@firm.test")._build(MESSAGE)
    assert msg["To"] == "r1@firm.test"
    assert msg["From"] == "alerts@firm.test"
    assert msg.is_multipart()


async def test_header_with_line_break_mapped():
    message = OutgoingEmail(to="r1@firm.test", subject="URGENT\nBcc: x@evil.test", text="body")
    with pytest.raises(EmailDeliveryError, match="rejected"):
        await SmtpEmailTransport("smtp.test").send(message)
