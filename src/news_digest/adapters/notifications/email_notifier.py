"""SMTP email delivery adapter."""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from news_digest.adapters.digest import build_subject, render_html, render_text
from news_digest.core import DeliveryError, Deliverer, RankedArticle

logger = logging.getLogger(__name__)


def format_smtp_error(error: BaseException) -> str:
    """Flatten an SMTP/socket error into a single detail string."""
    parts = [f"message={error}", f"type={type(error).__name__}"]
    code = getattr(error, "smtp_code", None)
    if code is not None:
        parts.append(f"responseCode={code}")
    response = getattr(error, "smtp_error", None)
    if response:
        if isinstance(response, bytes):
            response = response.decode("utf-8", errors="replace")
        parts.append(f"response={response}")
    return " | ".join(parts)


class SmtpDeliverer(Deliverer):
    """Send the digest as a multipart email over SMTP with SSL."""

    def __init__(
        self,
        user: str,
        password: str,
        host: str = "smtp.gmail.com",
        port: int = 465,
        timeout: float = 30.0,
        sender: Optional[str] = None,
    ) -> None:
        """Initialize SMTP deliverer.

        Args:
            user: SMTP login, also used as sender unless ``sender`` is given
            password: SMTP password (app password for Gmail)
            host: SMTP host
            port: SMTP SSL port
            timeout: Socket timeout in seconds for every SMTP operation
        """
        self.user = user
        self.password = password
        self.host = host
        self.port = port
        self.timeout = timeout
        self.sender = sender or user

    def build_message(self, recipients: list[str], articles: list[RankedArticle]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = ", ".join(recipients)
        message["Subject"] = build_subject(articles)
        message.set_content(render_text(articles))
        message.add_alternative(render_html(articles), subtype="html")
        return message

    def _send(self, recipients: list[str], message: EmailMessage) -> None:
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
            server.login(self.user, self.password)
            server.send_message(message, from_addr=self.sender, to_addrs=recipients)

    async def deliver(self, recipients: list[str], articles: list[RankedArticle]) -> None:
        """Send the digest to ``recipients``.

        Raises:
            DeliveryError: If credentials are missing or the transport fails.
        """
        if not self.user or not self.password:
            raise DeliveryError("Missing mail credentials: set GMAIL_USER and GMAIL_APP_PASSWORD")

        message = self.build_message(recipients, articles)
        logger.info("Attempting SMTP send to %s with %d articles", ", ".join(recipients), len(articles))

        try:
            await asyncio.to_thread(self._send, recipients, message)
        except (smtplib.SMTPException, OSError) as e:
            details = format_smtp_error(e)
            logger.error("SMTP send failed: %s", details)
            raise DeliveryError(f"Email delivery failed: {details}") from e

        logger.info("SMTP send success")
