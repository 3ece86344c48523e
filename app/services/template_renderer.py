"""Email template rendering utilities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html", "html.jinja"), default_for_string=False),
)

CONFIRMATION_SUBJECT = "Welcome! Please confirm your subscription"


@dataclass(slots=True)
class RenderedEmail:
    """Represents a rendered email with plain-text and HTML bodies."""

    subject: str
    html_body: str
    text_body: str


def render_confirmation_email(*, confirmation_link: str) -> RenderedEmail:
    """Render the double opt-in confirmation email for a given link."""

    html_body = _env.get_template("confirmation_email.html.jinja").render(confirmation_link=confirmation_link)
    text_body = _env.get_template("confirmation_email.txt.jinja").render(confirmation_link=confirmation_link)
    return RenderedEmail(subject=CONFIRMATION_SUBJECT, html_body=html_body, text_body=text_body)


def render_page(template_name: str, **context: object) -> str:
    """Render one of the HTML pages served by the site router."""

    return _env.get_template(template_name).render(**context)
