"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from app.services.email_client import EmailSender


def get_email_sender(request: Request) -> EmailSender:
    """Return the email sender configured on the application at startup."""

    return request.app.state.email_sender
