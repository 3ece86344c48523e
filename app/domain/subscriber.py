"""Validated subscriber identity value objects.

``SubscriberEmail`` and ``SubscriberName`` validate in ``__post_init__``, so an
instance only exists if its input passed the checks below. ``NewSubscriber``
checks the email before the name and reports the first failure.
"""

from __future__ import annotations

from dataclasses import dataclass

import regex
from email_validator import EmailNotValidError, validate_email

MAX_NAME_LENGTH = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')


class SubscriberValidationError(ValueError):
    """Raised when raw subscriber input fails validation."""


def _grapheme_length(value: str) -> int:
    return len(regex.findall(r"\X", value))


@dataclass(frozen=True, slots=True)
class SubscriberEmail:
    """A syntactically valid email address."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value:
            raise SubscriberValidationError("Email address must not be empty")
        if self.value != self.value.strip():
            raise SubscriberValidationError("Email address must not have surrounding whitespace")
        if "@" not in self.value:
            raise SubscriberValidationError(f"{self.value!r} is not a valid subscriber email")
        try:
            validate_email(self.value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise SubscriberValidationError(f"{self.value!r} is not a valid subscriber email") from exc

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class SubscriberName:
    """A display name without markup-significant characters."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise SubscriberValidationError("Subscriber name must not be empty")
        if self.value != self.value.strip():
            raise SubscriberValidationError("Subscriber name must not have surrounding whitespace")
        if _grapheme_length(self.value) > MAX_NAME_LENGTH:
            raise SubscriberValidationError(
                f"Subscriber name must be at most {MAX_NAME_LENGTH} characters long"
            )
        forbidden = sorted(FORBIDDEN_NAME_CHARACTERS.intersection(self.value))
        if forbidden:
            raise SubscriberValidationError(
                f"Subscriber name contains forbidden characters: {''.join(forbidden)}"
            )

    def __str__(self) -> str:
        return self.value


def parse_email(raw: str | None) -> SubscriberEmail:
    """Strip and validate a raw email address."""

    return SubscriberEmail((raw or "").strip())


def parse_name(raw: str | None) -> SubscriberName:
    """Strip and validate a raw subscriber name."""

    return SubscriberName((raw or "").strip())


@dataclass(frozen=True, slots=True)
class NewSubscriber:
    """Validated registration input, produced per request."""

    email: SubscriberEmail
    name: SubscriberName

    def __post_init__(self) -> None:
        if not isinstance(self.email, SubscriberEmail) or not isinstance(self.name, SubscriberName):
            raise TypeError("NewSubscriber requires parsed SubscriberEmail and SubscriberName values")

    @classmethod
    def parse(cls, raw_email: str | None, raw_name: str | None) -> NewSubscriber:
        email = parse_email(raw_email)
        name = parse_name(raw_name)
        return cls(email=email, name=name)
