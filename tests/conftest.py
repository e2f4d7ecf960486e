"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from postfeed.core.config import Settings
from postfeed.feed.client import BasePostsAPI
from postfeed.feed.notifier import TransientNotifier
from postfeed.feed.store import FeedStore
from postfeed.feed.types import FeedConfig

BASE_URL = "http://feed.test/api/facebook/posts"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temp data directory, ignoring any .env."""
    return Settings(
        base_url=BASE_URL,
        data_dir=tmp_path,
        notice_seconds=0.05,
        log_level="DEBUG",
        _env_file=None,
    )


@pytest.fixture
def api() -> AsyncMock:
    """Posts API double; every operation is an AsyncMock."""
    mock = AsyncMock(spec=BasePostsAPI)
    mock.list_posts.return_value = []
    return mock


@pytest.fixture
def feed_config() -> FeedConfig:
    return FeedConfig(base_url=BASE_URL, notice_seconds=0.05)


@pytest.fixture
def notifier() -> TransientNotifier:
    return TransientNotifier(expires_after=0.05)


@pytest.fixture
def store(feed_config: FeedConfig, api: AsyncMock, notifier: TransientNotifier) -> FeedStore:
    return FeedStore(feed_config, api=api, notifier=notifier)
