"""Tests for bearer credential providers."""

from __future__ import annotations

from pathlib import Path

from postfeed.core.credentials import (
    ChainedCredentials,
    StaticCredentials,
    TokenFile,
    credentials_from_settings,
    no_credentials,
)


def test_no_credentials():
    assert no_credentials() is None


def test_static_credentials_blank_is_none():
    assert StaticCredentials("  ")() is None
    assert StaticCredentials(" tok ")() == "tok"


def test_token_file_roundtrip(tmp_path: Path):
    tf = TokenFile(tmp_path / "credentials" / "token.json")
    assert tf() is None

    tf.save("secret")
    assert tf() == "secret"

    assert tf.clear() is True
    assert tf() is None
    assert tf.clear() is False


def test_token_file_unreadable(tmp_path: Path):
    path = tmp_path / "token.json"
    path.write_text("{not json")
    assert TokenFile(path)() is None

    path.write_text('["a list"]')
    assert TokenFile(path)() is None

    path.write_text('{"token": ""}')
    assert TokenFile(path)() is None


def test_chain_returns_first_token(tmp_path: Path):
    tf = TokenFile(tmp_path / "token.json")
    tf.save("from-file")

    assert ChainedCredentials(StaticCredentials(""), tf)() == "from-file"
    assert ChainedCredentials(StaticCredentials("env"), tf)() == "env"
    assert ChainedCredentials(no_credentials)() is None


def test_credentials_from_settings_prefers_env(settings):
    TokenFile(settings.credentials_path).save("stored")
    assert credentials_from_settings(settings)() == "stored"

    with_env = settings.model_copy(update={"api_token": "env"})
    assert credentials_from_settings(with_env)() == "env"
