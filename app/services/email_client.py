"""Outbound email transports.

A sender is any ``Callable[[EmailPayload], Awaitable[None]]``. One instance is
shared by all concurrent requests; the REST sender keeps a single pooled
``httpx.AsyncClient`` that is closed on application shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Awaitable, Callable
from urllib.parse import unquote, urlparse

import httpx

from app.core.config import Settings
from app.domain.subscriber import SubscriberEmail

logger = logging.getLogger(__name__)


class EmailError(RuntimeError):
    """Raised when an email could not be handed to the transport in time."""


@dataclass(slots=True)
class EmailPayload:
    """Represents an outbound email message."""

    to: SubscriberEmail
    subject: str
    html_body: str
    text_body: str


EmailSender = Callable[[EmailPayload], Awaitable[None]]


async def log_only_sender(payload: EmailPayload) -> None:
    """Development sender that only logs the payload."""

    logger.info("Sending email (log only)", extra={"to": str(payload.to), "subject": payload.subject})


class HttpEmailSender:
    """Sender for a Postmark-style ``POST /email`` JSON API over one pooled client."""

    def __init__(
        self,
        base_url: str,
        sender: SubscriberEmail,
        authorization_token: str,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/email"
        self._sender = sender
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"X-Postmark-Server-Token": authorization_token},
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def __call__(self, payload: EmailPayload) -> None:
        body = {
            "From": self._sender.value,
            "To": payload.to.value,
            "Subject": payload.subject,
            "HtmlBody": payload.html_body,
            "TextBody": payload.text_body,
        }
        response = await self._client.post(self._url, json=body)
        response.raise_for_status()

    async def aclose(self) -> None:
        await self._client.aclose()


def build_http_sender(
    base_url: str,
    sender: SubscriberEmail,
    authorization_token: str,
    *,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpEmailSender:
    """Build the REST sender; the caller closes it with ``close_email_sender``."""

    return HttpEmailSender(base_url, sender, authorization_token, timeout=timeout, transport=transport)


async def close_email_sender(sender: EmailSender) -> None:
    """Release pooled connections held by ``sender``, if it keeps any."""

    aclose = getattr(sender, "aclose", None)
    if aclose is not None:
        await aclose()


def build_smtp_sender(url: str, from_address: SubscriberEmail) -> EmailSender:
    """Build a sender that relays through an SMTP server in a worker thread."""

    parsed = urlparse(url)
    if not parsed.hostname:
        raise ValueError("SMTP URL missing hostname")

    scheme = (parsed.scheme or "smtp").lower()
    host = parsed.hostname
    port = parsed.port or (465 if scheme == "smtps" else 587)
    username = unquote(parsed.username) if parsed.username else None
    password = unquote(parsed.password) if parsed.password else None

    use_ssl = scheme == "smtps"
    use_starttls = scheme in {"smtp", "submission"} and not use_ssl

    def _send(payload: EmailPayload) -> None:
        message = EmailMessage()
        message["From"] = from_address.value
        message["To"] = payload.to.value
        message["Subject"] = payload.subject
        message.set_content(payload.text_body)
        message.add_alternative(payload.html_body, subtype="html")

        if use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(host, port, context=context) as smtp:
                if username:
                    smtp.login(username, password or "")
                smtp.send_message(message)
        else:
            with smtplib.SMTP(host, port) as smtp:
                smtp.ehlo()
                if use_starttls:
                    context = ssl.create_default_context()
                    smtp.starttls(context=context)
                    smtp.ehlo()
                if username:
                    smtp.login(username, password or "")
                smtp.send_message(message)

    async def _async_send(payload: EmailPayload) -> None:
        await asyncio.to_thread(_send, payload)

    return _async_send


def configure_email_sender(config: Settings) -> EmailSender:
    """Pick a transport from settings, falling back to the log-only sender."""

    if config.email_api_base_url:
        if not config.email_authorization_token:
            raise ValueError("APP_EMAIL_AUTHORIZATION_TOKEN is required with APP_EMAIL_API_BASE_URL")
        logger.info("Using REST email transport", extra={"host": urlparse(config.email_api_base_url).hostname})
        return build_http_sender(
            config.email_api_base_url,
            SubscriberEmail(config.email_sender),
            config.email_authorization_token,
            timeout=config.email_timeout_seconds,
        )

    if config.email_smtp_url:
        logger.info("Using SMTP email transport", extra={"host": urlparse(config.email_smtp_url).hostname})
        return build_smtp_sender(config.email_smtp_url, SubscriberEmail(config.email_sender))

    logger.info("No email transport configured; using log-only sender")
    return log_only_sender


async def send_email(sender: EmailSender, payload: EmailPayload, *, timeout: float) -> None:
    """Send ``payload`` within ``timeout`` seconds, raising ``EmailError`` otherwise."""

    try:
        await asyncio.wait_for(sender(payload), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise EmailError(f"Timed out after {timeout:.1f}s sending email") from exc
    except EmailError:
        raise
    except Exception as exc:  # noqa: BLE001 - any transport failure is an EmailError
        raise EmailError(f"Failed to send email: {exc}") from exc
