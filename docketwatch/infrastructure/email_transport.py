"""SMTP Email Transport — sends one message via smtplib in a worker thread.

Invariants:
    - send() raises EmailDeliveryError for every failure (SMTP, socket, missing config,
      header values the email package refuses)
    - The event loop never blocks: the blocking smtplib session runs in asyncio.to_thread
    - One SMTP connection per message (no pooled sessions to go stale between cron runs)
"""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage

from docketwatch.core.domain_types import OutgoingEmail
from docketwatch.core.errors import EmailDeliveryError


class SmtpEmailTransport:
    def __init__(
        self,
        host: str | None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str = "no-reply@localhost",
        timeout_seconds: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout_seconds = timeout_seconds

    async def send(self, message: OutgoingEmail) -> None:
        if not self.host:
            raise EmailDeliveryError("SMTP host not configured")
        try:
            msg = self._build(message)
        except ValueError as e:
            # header injection guard in email.message (CR/LF in a header value)
            raise EmailDeliveryError(f"message rejected: {e}")
        try:
            await asyncio.to_thread(self._send_blocking, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(str(e))

    def _build(self, message: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.set_content(message.text)
        if message.html:
            msg.add_alternative(message.html, subtype="html")
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        if self.port == 465:
            smtp = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout_seconds,
                context=ssl.create_default_context(),
            )
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)
        with smtp:
            smtp.ehlo()
            if self.port != 465 and smtp.has_extn("starttls"):
                smtp.starttls(context=ssl.create_default_context())
                smtp.ehlo()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)
