"""Persistence helpers for subscriptions and their confirmation tokens.

Functions here never commit; the caller owns the transaction boundary so that
a pending insert and its token can be committed together.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import STATUS_CONFIRMED, STATUS_PENDING, Subscription, SubscriptionToken
from app.domain.subscriber import NewSubscriber, SubscriberEmail, SubscriberValidationError

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the database rejects or fails a subscription operation."""


async def insert_pending_subscriber(session: AsyncSession, new_subscriber: NewSubscriber) -> uuid.UUID:
    """Insert a subscription in ``pending_confirmation`` state and return its id."""

    subscription = Subscription(
        id=uuid.uuid4(),
        email=new_subscriber.email.value,
        name=new_subscriber.name.value,
        subscribed_at=datetime.now(timezone.utc),
        status=STATUS_PENDING,
    )
    try:
        session.add(subscription)
        await session.flush()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to insert new subscriber") from exc
    return subscription.id


async def get_subscriber_id_by_email(session: AsyncSession, email: SubscriberEmail) -> uuid.UUID | None:
    """Return the id of the subscription registered under ``email``, if any."""

    try:
        return await session.scalar(select(Subscription.id).where(Subscription.email == email.value))
    except SQLAlchemyError as exc:
        raise StorageError("Failed to look up subscriber by email") from exc


async def store_token(session: AsyncSession, *, token: str, subscriber_id: uuid.UUID) -> None:
    """Map a confirmation token to its subscriber."""

    try:
        session.add(SubscriptionToken(subscription_token=token, subscriber_id=subscriber_id))
        await session.flush()
    except SQLAlchemyError as exc:
        raise StorageError("Failed to store subscription token") from exc


async def get_subscriber_id_from_token(session: AsyncSession, token: str) -> uuid.UUID | None:
    """Resolve a confirmation token; ``None`` when it was never issued."""

    try:
        return await session.scalar(
            select(SubscriptionToken.subscriber_id).where(SubscriptionToken.subscription_token == token)
        )
    except SQLAlchemyError as exc:
        raise StorageError("Failed to resolve subscription token") from exc


async def confirm_subscriber(session: AsyncSession, subscriber_id: uuid.UUID) -> bool:
    """Move a pending subscription to ``confirmed``.

    Returns True when this call performed the transition and False when the
    subscription was already confirmed.
    """

    stmt = (
        update(Subscription)
        .where(Subscription.id == subscriber_id, Subscription.status == STATUS_PENDING)
        .values(status=STATUS_CONFIRMED)
        .execution_options(synchronize_session=False)
    )
    try:
        result = await session.execute(stmt)
    except SQLAlchemyError as exc:
        raise StorageError("Failed to confirm subscriber") from exc
    return result.rowcount > 0


async def get_subscription_status(session: AsyncSession, subscriber_id: uuid.UUID) -> str | None:
    """Return the lifecycle status of a subscription, or ``None`` if unknown."""

    try:
        return await session.scalar(select(Subscription.status).where(Subscription.id == subscriber_id))
    except SQLAlchemyError as exc:
        raise StorageError("Failed to read subscription status") from exc


async def iter_confirmed_subscribers(
    session: AsyncSession,
    *,
    batch_size: int = 100,
) -> AsyncIterator[SubscriberEmail]:
    """Yield the email of every confirmed subscriber, one page at a time."""

    batch_size = max(batch_size, 1)
    last_id: uuid.UUID | None = None

    while True:
        stmt = (
            select(Subscription.id, Subscription.email)
            .where(Subscription.status == STATUS_CONFIRMED)
            .order_by(Subscription.id)
            .limit(batch_size)
        )
        if last_id is not None:
            stmt = stmt.where(Subscription.id > last_id)

        try:
            rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to list confirmed subscribers") from exc

        for subscriber_id, raw_email in rows:
            try:
                yield SubscriberEmail(raw_email)
            except SubscriberValidationError:
                logger.warning(
                    "Skipping confirmed subscriber with an invalid stored email",
                    extra={"subscriber_id": str(subscriber_id)},
                )

        if len(rows) < batch_size:
            return
        last_id = rows[-1][0]
