"""Pydantic models for the newsletter publishing API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class NewsletterContent(BaseModel):
    text: str = Field(..., min_length=1, description="Plain-text body")
    html: str = Field(..., min_length=1, description="HTML body")


class NewsletterRequest(BaseModel):
    """Inbound payload describing a newsletter issue."""

    title: str = Field(..., min_length=1)
    content: NewsletterContent


class NewsletterResponse(BaseModel):
    """Summary of a completed fan-out attempt."""

    delivered: int
    failed: int
