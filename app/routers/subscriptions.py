"""Subscription registration and confirmation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Form, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.models import STATUS_CONFIRMED, STATUS_PENDING
from app.db.session import get_session
from app.domain.subscriber import NewSubscriber, SubscriberValidationError
from app.routers.deps import get_email_sender
from app.schema.subscription import ConfirmationResponse, SubscriptionResponse
from app.services.email_client import EmailError, EmailSender
from app.services.subscription_repository import StorageError
from app.services.subscription_service import UnknownTokenError, confirm_subscription, register_subscriber

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("", response_model=SubscriptionResponse, status_code=status.HTTP_200_OK)
async def subscribe(
    name: str = Form(...),
    email: str = Form(...),
    session: AsyncSession = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
) -> SubscriptionResponse:
    """Register an email address and send it a confirmation link."""

    try:
        new_subscriber = NewSubscriber.parse(email, name)
    except SubscriberValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        await register_subscriber(
            session,
            sender,
            new_subscriber,
            base_url=settings.application_base_url,
            timeout=settings.email_timeout_seconds,
        )
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to store subscription; please retry later",
        ) from exc
    except EmailError as exc:
        logger.exception("Failed to send confirmation email")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to send confirmation email; please retry later",
        ) from exc

    return SubscriptionResponse(email=new_subscriber.email.value, status=STATUS_PENDING)


@router.get("/confirm", response_model=ConfirmationResponse)
async def confirm(
    subscription_token: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
) -> ConfirmationResponse:
    """Confirm the subscription that owns the given token."""

    try:
        await confirm_subscription(session, subscription_token)
    except UnknownTokenError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to confirm subscription; please retry later",
        ) from exc

    return ConfirmationResponse(status=STATUS_CONFIRMED)
