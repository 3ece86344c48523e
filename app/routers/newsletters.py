"""Newsletter publishing endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import require_publisher
from app.db.session import get_session
from app.routers.deps import get_email_sender
from app.schema.newsletter import NewsletterRequest, NewsletterResponse
from app.services.email_client import EmailSender
from app.services.newsletter_dispatcher import InvalidIssueError, NewsletterIssue, publish_newsletter
from app.services.subscription_repository import StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/newsletters", tags=["newsletters"])


@router.post("", response_model=NewsletterResponse)
async def publish(
    payload: NewsletterRequest,
    publisher: str = Depends(require_publisher),
    session: AsyncSession = Depends(get_session),
    sender: EmailSender = Depends(get_email_sender),
) -> NewsletterResponse:
    """Deliver a newsletter issue to every confirmed subscriber."""

    try:
        issue = NewsletterIssue(
            title=payload.title,
            text_body=payload.content.text,
            html_body=payload.content.html,
        )
    except InvalidIssueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info("Newsletter publish requested", extra={"publisher": publisher})

    try:
        report = await publish_newsletter(
            session,
            sender,
            issue,
            timeout=settings.email_timeout_seconds,
            max_concurrency=settings.newsletter_max_concurrency,
            batch_size=settings.newsletter_batch_size,
        )
    except StorageError as exc:
        logger.exception("Failed to list confirmed subscribers")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to publish newsletter; please retry later",
        ) from exc

    return NewsletterResponse(delivered=report.delivered, failed=len(report.failed))
