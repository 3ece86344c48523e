"""Tests for confirmation token generation."""

from app.services.tokens import TOKEN_LENGTH, generate_subscription_token, is_well_formed_token


def test_token_is_fixed_length_alphanumeric():
    token = generate_subscription_token()
    assert len(token) == TOKEN_LENGTH == 25
    assert token.isascii() and token.isalnum()


def test_tokens_do_not_repeat():
    tokens = {generate_subscription_token() for _ in range(1000)}
    assert len(tokens) == 1000


def test_is_well_formed_token():
    assert is_well_formed_token(generate_subscription_token())
    assert not is_well_formed_token(None)
    assert not is_well_formed_token("")
    assert not is_well_formed_token("short")
    assert not is_well_formed_token("a" * 24 + "-")
    assert not is_well_formed_token("a" * 26)


def test_trailing_newline_is_not_well_formed():
    assert not is_well_formed_token(generate_subscription_token() + "\n")
