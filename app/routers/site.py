"""HTML pages: the home page and the publisher login form."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import HTMLResponse, RedirectResponse

from app.services.template_renderer import render_page

router = APIRouter(tags=["site"])


@router.get("/", response_class=HTMLResponse)
async def home() -> HTMLResponse:
    return HTMLResponse(render_page("home.html.jinja"))


@router.get("/login", response_class=HTMLResponse)
async def login_form() -> HTMLResponse:
    return HTMLResponse(render_page("login.html.jinja"))


@router.post("/login")
async def login() -> RedirectResponse:
    """Send the browser back to the home page.

    Publishing is authorised per request with basic auth, so the form does
    not establish a session.
    """

    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
