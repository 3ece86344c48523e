"""Pydantic schemas for subscription API."""

from __future__ import annotations

from pydantic import BaseModel


class SubscriptionResponse(BaseModel):
    """Response payload after a registration was accepted."""

    email: str
    status: str


class ConfirmationResponse(BaseModel):
    """Response payload after a confirmation link was followed."""

    status: str
