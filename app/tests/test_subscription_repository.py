"""Tests for the subscription repository helpers."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import STATUS_CONFIRMED, STATUS_PENDING, Subscription
from app.domain.subscriber import NewSubscriber
from app.services import subscription_repository as repository
from app.services.subscription_repository import StorageError

pytest_plugins = ("pytest_asyncio",)


async def _collect(session: AsyncSession, **kwargs) -> list[str]:
    return [email.value async for email in repository.iter_confirmed_subscribers(session, **kwargs)]


async def _confirmed(session: AsyncSession, email: str) -> uuid.UUID:
    subscriber_id = await repository.insert_pending_subscriber(session, NewSubscriber.parse(email, "Reader"))
    await repository.confirm_subscriber(session, subscriber_id)
    return subscriber_id


@pytest.mark.asyncio
async def test_insert_pending_subscriber(session: AsyncSession) -> None:
    new_subscriber = NewSubscriber.parse("jane@mail.com", "Jane Doe")
    subscriber_id = await repository.insert_pending_subscriber(session, new_subscriber)
    await session.commit()

    row = await session.get(Subscription, subscriber_id)
    assert row is not None
    assert row.email == "jane@mail.com"
    assert row.name == "Jane Doe"
    assert row.status == STATUS_PENDING
    assert row.subscribed_at is not None

    assert await repository.get_subscriber_id_by_email(session, new_subscriber.email) == subscriber_id


@pytest.mark.asyncio
async def test_insert_duplicate_email_raises_storage_error(session: AsyncSession) -> None:
    new_subscriber = NewSubscriber.parse("jane@mail.com", "Jane Doe")
    await repository.insert_pending_subscriber(session, new_subscriber)

    with pytest.raises(StorageError):
        await repository.insert_pending_subscriber(session, new_subscriber)


@pytest.mark.asyncio
async def test_store_and_resolve_token(session: AsyncSession) -> None:
    subscriber_id = await repository.insert_pending_subscriber(session, NewSubscriber.parse("jane@mail.com", "Jane"))
    await repository.store_token(session, token="A" * 25, subscriber_id=subscriber_id)

    assert await repository.get_subscriber_id_from_token(session, "A" * 25) == subscriber_id
    assert await repository.get_subscriber_id_from_token(session, "B" * 25) is None


@pytest.mark.asyncio
async def test_duplicate_token_raises_storage_error(session: AsyncSession) -> None:
    subscriber_id = await repository.insert_pending_subscriber(session, NewSubscriber.parse("jane@mail.com", "Jane"))
    await repository.store_token(session, token="A" * 25, subscriber_id=subscriber_id)

    with pytest.raises(StorageError):
        await repository.store_token(session, token="A" * 25, subscriber_id=subscriber_id)


@pytest.mark.asyncio
async def test_confirm_subscriber_is_idempotent(session: AsyncSession) -> None:
    subscriber_id = await repository.insert_pending_subscriber(session, NewSubscriber.parse("jane@mail.com", "Jane"))

    assert await repository.confirm_subscriber(session, subscriber_id) is True
    assert await repository.confirm_subscriber(session, subscriber_id) is False
    assert await repository.get_subscription_status(session, subscriber_id) == STATUS_CONFIRMED


@pytest.mark.asyncio
async def test_confirm_unknown_subscriber_changes_nothing(session: AsyncSession) -> None:
    assert await repository.confirm_subscriber(session, uuid.uuid4()) is False
    assert await repository.get_subscription_status(session, uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_iter_confirmed_subscribers_skips_pending(session: AsyncSession) -> None:
    await _confirmed(session, "confirmed@mail.com")
    await repository.insert_pending_subscriber(session, NewSubscriber.parse("pending@mail.com", "Pending"))

    assert await _collect(session) == ["confirmed@mail.com"]


@pytest.mark.asyncio
async def test_iter_confirmed_subscribers_pages_through_all_rows(session: AsyncSession) -> None:
    emails = {f"reader{i}@mail.com" for i in range(7)}
    for email in emails:
        await _confirmed(session, email)

    collected = await _collect(session, batch_size=2)
    assert len(collected) == len(emails)
    assert set(collected) == emails


@pytest.mark.asyncio
async def test_iter_confirmed_subscribers_skips_invalid_stored_email(session: AsyncSession) -> None:
    session.add(Subscription(email="not-an-email", name="Legacy", status=STATUS_CONFIRMED))
    await _confirmed(session, "valid@mail.com")
    await session.flush()

    assert await _collect(session) == ["valid@mail.com"]
