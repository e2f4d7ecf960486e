"""Tests for the click CLI."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from click.testing import CliRunner
from rich.console import Console

from postfeed.cli.app import cli
from postfeed.cli.rendering import EMPTY_FEED_TEXT, render_post
from postfeed.core.credentials import TokenFile
from postfeed.feed.client import BasePostsAPI
from postfeed.feed.errors import ServerError, TransportError
from postfeed.feed.types import Post, PostDraft, PostEntity

T = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def _post(post_id, content="hi", **kwargs) -> Post:
    return Post(id=post_id, content=content, author="Ann", created_at=T, modified_at=T, **kwargs)


@pytest.fixture
def cli_api() -> AsyncMock:
    mock = AsyncMock(spec=BasePostsAPI)
    mock.list_posts.return_value = [_post(1, "hello world")]
    return mock


@pytest.fixture
def run(settings, cli_api):
    """Invoke the CLI against the fake API with test settings."""
    runner = CliRunner()

    def _run(*args: str, input: str | None = None):
        with patch("postfeed.cli.app.get_settings", return_value=settings), \
             patch("postfeed.cli.app.setup_logging"), \
             patch("postfeed.feed.store.PostsClient.from_config", return_value=cli_api):
            return runner.invoke(cli, list(args), input=input)

    return _run


def test_list_shows_posts(run):
    result = run("list")
    assert result.exit_code == 0, result.output
    assert "hello world" in result.output
    assert "Posted by: Ann" in result.output


def test_list_empty_feed(run, cli_api):
    cli_api.list_posts.return_value = []
    result = run("list")
    assert result.exit_code == 0
    assert EMPTY_FEED_TEXT in result.output


def test_list_failure_exits_nonzero(run, cli_api):
    cli_api.list_posts.side_effect = TransportError("Connection refused")
    result = run("list")
    assert result.exit_code == 1
    assert "Failed to load posts: Connection refused" in result.output


def test_post_creates(run, cli_api):
    cli_api.create_post.return_value = _post(2, "fresh")
    result = run("post", "fresh", "--image", "https://img.test/a.png")
    assert result.exit_code == 0, result.output
    assert "Post created." in result.output
    cli_api.create_post.assert_awaited_once_with(
        PostDraft(content="fresh", image_url="https://img.test/a.png")
    )


def test_post_blank_is_rejected(run, cli_api):
    result = run("post", "   ")
    assert result.exit_code == 1
    assert "Post content cannot be empty." in result.output
    cli_api.create_post.assert_not_awaited()


def test_edit_keeps_image_unless_given(run, cli_api):
    cli_api.list_posts.return_value = [_post(1, "old", image_url="https://img.test/a.png")]
    cli_api.update_post.return_value = _post(1, "new", image_url="https://img.test/a.png")

    result = run("edit", "1", "new")

    assert result.exit_code == 0, result.output
    assert "Post updated." in result.output
    cli_api.update_post.assert_awaited_once_with(
        1, PostDraft(content="new", image_url="https://img.test/a.png")
    )


def test_edit_can_clear_image(run, cli_api):
    cli_api.list_posts.return_value = [_post(1, "old", image_url="https://img.test/a.png")]
    cli_api.update_post.return_value = _post(1, "new")

    result = run("edit", "1", "new", "--image", "")

    assert result.exit_code == 0, result.output
    assert cli_api.update_post.call_args.args[1].image_url is None


def test_edit_unknown_post(run, cli_api):
    result = run("edit", "42", "x")
    assert result.exit_code == 1
    assert "Post 42 not found." in result.output
    cli_api.update_post.assert_not_awaited()


def test_edit_server_error(run, cli_api):
    cli_api.update_post.side_effect = ServerError("Request failed with status code 500", 500, body="oops")
    result = run("edit", "1", "x")
    assert result.exit_code == 1
    assert "Failed to update post: oops" in result.output


def test_delete_prompts_and_cancels(run, cli_api):
    result = run("delete", "1", input="n\n")
    assert result.exit_code == 0
    assert "Cancelled." in result.output
    cli_api.delete_post.assert_not_awaited()


def test_delete_confirmed(run, cli_api):
    result = run("delete", "1", input="y\n")
    assert result.exit_code == 0, result.output
    assert "Post 1 deleted." in result.output
    cli_api.delete_post.assert_awaited_once_with(1)


def test_delete_with_yes_flag(run, cli_api):
    result = run("delete", "1", "--yes")
    assert result.exit_code == 0
    cli_api.delete_post.assert_awaited_once_with(1)


def test_login_and_logout(run, settings):
    result = run("login", "tok-123")
    assert result.exit_code == 0
    assert TokenFile(settings.credentials_path)() == "tok-123"

    result = run("logout")
    assert "Token removed." in result.output
    assert TokenFile(settings.credentials_path)() is None

    result = run("logout")
    assert "No stored token." in result.output


def test_list_probe_images_falls_back(run, cli_api):
    cli_api.list_posts.return_value = [_post(1, "pic", image_url="https://img.test/gone.png")]
    client = AsyncMock(spec=httpx.AsyncClient)
    client.head = AsyncMock(side_effect=httpx.ConnectError("refused"))
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)

    with patch("postfeed.cli.app.make_httpx_client", return_value=client):
        result = run("list", "--probe-images")

    assert result.exit_code == 0, result.output
    assert "[Image failed]" in result.output
    assert client.head.await_count == 2


def test_post_id_is_not_parsed_as_markup():
    entity = PostEntity.from_post(_post("[red]x[/red]", "markup id"))
    console = Console(record=True, width=80)

    console.print(render_post(entity))

    assert "#[red]x[/red]" in console.export_text()
