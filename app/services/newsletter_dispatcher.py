"""Fan-out of newsletter issues to confirmed subscribers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.subscriber import SubscriberEmail
from app.services.email_client import EmailError, EmailPayload, EmailSender, send_email
from app.services.subscription_repository import iter_confirmed_subscribers

logger = logging.getLogger(__name__)


class InvalidIssueError(ValueError):
    """Raised when a newsletter issue is missing its title or a body."""


@dataclass(frozen=True, slots=True)
class NewsletterIssue:
    """A newsletter issue ready for delivery."""

    title: str
    text_body: str
    html_body: str

    def __post_init__(self) -> None:
        for field_name in ("title", "text_body", "html_body"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidIssueError(f"Newsletter {field_name} must not be empty")


@dataclass(slots=True)
class DeliveryReport:
    """Outcome of a fan-out attempt."""

    delivered: int = 0
    failed: list[str] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.delivered + len(self.failed)


async def _deliver(
    sender: EmailSender,
    recipient: SubscriberEmail,
    issue: NewsletterIssue,
    *,
    timeout: float,
    semaphore: asyncio.Semaphore,
    report: DeliveryReport,
) -> None:
    payload = EmailPayload(
        to=recipient,
        subject=issue.title,
        html_body=issue.html_body,
        text_body=issue.text_body,
    )
    async with semaphore:
        try:
            await send_email(sender, payload, timeout=timeout)
        except EmailError:
            logger.exception("Failed to deliver newsletter issue", extra={"recipient": recipient.value})
            report.failed.append(recipient.value)
            return
    report.delivered += 1


async def publish_newsletter(
    session: AsyncSession,
    sender: EmailSender,
    issue: NewsletterIssue,
    *,
    timeout: float,
    max_concurrency: int = 10,
    batch_size: int = 100,
) -> DeliveryReport:
    """Send ``issue`` to every confirmed subscriber.

    A failed or timed-out send is logged and recorded in the report without
    stopping delivery to the remaining recipients. Errors while listing
    subscribers propagate as ``StorageError``.
    """

    report = DeliveryReport()
    semaphore = asyncio.Semaphore(max(max_concurrency, 1))
    pending: list[asyncio.Task] = []

    logger.info("Publishing newsletter issue", extra={"title": issue.title})

    try:
        async for recipient in iter_confirmed_subscribers(session, batch_size=batch_size):
            pending.append(
                asyncio.create_task(
                    _deliver(sender, recipient, issue, timeout=timeout, semaphore=semaphore, report=report)
                )
            )
            if len(pending) >= batch_size:
                await asyncio.gather(*pending)
                pending = []
    finally:
        # In-flight sends finish even when listing fails part way.
        if pending:
            await asyncio.gather(*pending)

    logger.info(
        "Newsletter fan-out complete",
        extra={"delivered": report.delivered, "failed": len(report.failed)},
    )
    return report
