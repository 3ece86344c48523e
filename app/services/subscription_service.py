"""Double opt-in registration and confirmation workflow."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.subscriber import NewSubscriber
from app.services import subscription_repository as repository
from app.services.email_client import EmailPayload, EmailSender, send_email
from app.services.subscription_repository import StorageError
from app.services.template_renderer import render_confirmation_email
from app.services.tokens import generate_subscription_token, is_well_formed_token

logger = logging.getLogger(__name__)


class UnknownTokenError(LookupError):
    """Raised when a confirmation token is missing or was never issued."""


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to commit subscription changes") from exc


def build_confirmation_link(base_url: str, token: str) -> str:
    """Return the link a subscriber follows to confirm their subscription."""

    return f"{base_url.rstrip('/')}/subscriptions/confirm?subscription_token={token}"


async def _issue_pending_subscription(session: AsyncSession, new_subscriber: NewSubscriber) -> tuple[uuid.UUID, str]:
    subscriber_id = await repository.get_subscriber_id_by_email(session, new_subscriber.email)
    if subscriber_id is None:
        subscriber_id = await repository.insert_pending_subscriber(session, new_subscriber)
    else:
        logger.info("Email already registered; issuing a fresh token", extra={"subscriber_id": str(subscriber_id)})

    token = generate_subscription_token()
    await repository.store_token(session, token=token, subscriber_id=subscriber_id)
    return subscriber_id, token


async def register_subscriber(
    session: AsyncSession,
    sender: EmailSender,
    new_subscriber: NewSubscriber,
    *,
    base_url: str,
    timeout: float,
) -> uuid.UUID:
    """Persist a pending subscription with a token, then email the confirmation link.

    The subscription and its token are committed together. The email is sent
    afterwards; a failed send raises ``EmailError`` but leaves the committed
    pending subscription in place.
    """

    try:
        subscriber_id, token = await _issue_pending_subscription(session, new_subscriber)
        await _commit(session)
    except StorageError:
        await session.rollback()
        logger.exception("Failed to persist pending subscription")
        raise

    logger.info("Pending subscription stored", extra={"subscriber_id": str(subscriber_id)})

    rendered = render_confirmation_email(confirmation_link=build_confirmation_link(base_url, token))
    payload = EmailPayload(
        to=new_subscriber.email,
        subject=rendered.subject,
        html_body=rendered.html_body,
        text_body=rendered.text_body,
    )
    await send_email(sender, payload, timeout=timeout)

    logger.info("Confirmation email sent", extra={"subscriber_id": str(subscriber_id)})
    return subscriber_id


async def confirm_subscription(session: AsyncSession, token: str | None) -> uuid.UUID:
    """Confirm the subscriber owning ``token``; repeated calls succeed."""

    if not is_well_formed_token(token):
        raise UnknownTokenError("Invalid or missing subscription token")

    try:
        subscriber_id = await repository.get_subscriber_id_from_token(session, token)
        if subscriber_id is None:
            raise UnknownTokenError("Invalid or missing subscription token")
        transitioned = await repository.confirm_subscriber(session, subscriber_id)
        await _commit(session)
    except StorageError:
        await session.rollback()
        logger.exception("Failed to confirm subscription")
        raise

    logger.info(
        "Subscription confirmed",
        extra={"subscriber_id": str(subscriber_id), "already_confirmed": not transitioned},
    )
    return subscriber_id
