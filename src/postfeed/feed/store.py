"""In-memory feed state reconciled against the posts service."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from postfeed.feed.client import BasePostsAPI, PostsClient
from postfeed.feed.errors import PostsAPIError, ServerError, to_feed_error
from postfeed.feed.notifier import TransientNotifier
from postfeed.feed.types import (
    ErrorKind,
    FeedConfig,
    FeedError,
    Post,
    PostDraft,
    PostEntity,
    PostId,
    Result,
)

logger = logging.getLogger(__name__)

EMPTY_CONTENT_MESSAGE = "Post content cannot be empty."

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _key(post_id: PostId) -> str:
    # Ids are opaque; "7" from a command line and 7 from JSON are the same post
    return str(post_id)


def _as_draft(draft: PostDraft | Mapping[str, Any]) -> PostDraft:
    if isinstance(draft, PostDraft):
        return draft
    return PostDraft.model_validate(dict(draft))


class FeedStore:
    """Single source of truth for the feed.

    Every change except the initial read goes through the posts service
    first; local state is only touched once the service confirms. At most
    one post is in edit mode at a time, and a pending save locks that
    post's edit form.

    Operations return a :class:`Result` and never raise for service or
    validation failures; those are also reported through the notifier.
    """

    def __init__(
        self,
        config: FeedConfig,
        api: BasePostsAPI | None = None,
        notifier: TransientNotifier | None = None,
    ) -> None:
        self._config = config
        self._owns_api = api is None
        self._api = api or PostsClient.from_config(config)
        self._owns_notifier = notifier is None
        self._notifier = notifier or TransientNotifier(config.notice_seconds)
        self._entities: list[PostEntity] = []
        self._loading = False
        self._loaded = False
        self._saving: set[str] = set()
        self._deleting: set[str] = set()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def posts(self) -> tuple[PostEntity, ...]:
        return tuple(self._entities)

    @property
    def notifier(self) -> TransientNotifier:
        return self._notifier

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def editing_id(self) -> PostId | None:
        for entity in self._entities:
            if entity.editing:
                return entity.id
        return None

    def get(self, post_id: PostId) -> PostEntity | None:
        index = self._index(post_id)
        return None if index is None else self._entities[index]

    def is_saving(self, post_id: PostId) -> bool:
        return _key(post_id) in self._saving

    def is_deleting(self, post_id: PostId) -> bool:
        return _key(post_id) in self._deleting

    def _index(self, post_id: PostId) -> int | None:
        key = _key(post_id)
        for i, entity in enumerate(self._entities):
            if _key(entity.id) == key:
                return i
        return None

    # ------------------------------------------------------------------
    # Failure reporting
    # ------------------------------------------------------------------

    def _fail(self, action: str, exc: PostsAPIError) -> Result[Any]:
        error = to_feed_error(exc)
        logger.warning("%s (%s): %s", action, error.kind.value, error.message)
        self._notifier.error(f"{action}: {error.message}")
        return Result.failure(error)

    def _reject_blank(self) -> Result[Any]:
        logger.info("Rejected post with empty content")
        self._notifier.error(EMPTY_CONTENT_MESSAGE)
        return Result.failure(FeedError(ErrorKind.VALIDATION, EMPTY_CONTENT_MESSAGE))

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _snapshot(self, posts: Iterable[Post]) -> list[PostEntity]:
        seen: set[str] = set()
        entities: list[PostEntity] = []
        for post in posts:
            key = _key(post.id)
            if key in seen:
                logger.warning("Duplicate post id %s in listing, keeping the first", post.id)
                continue
            seen.add(key)
            entities.append(PostEntity.from_post(post))
        if self._config.sort_newest_first:
            # Stable, so posts sharing a timestamp keep the service's order
            entities.sort(key=lambda e: e.created_at or _OLDEST, reverse=True)
        return entities

    async def load(self) -> Result[list[PostEntity]]:
        """Replace the feed with the service's listing.

        On failure the current feed (empty on a cold start) is kept.
        """
        self._loading = True
        try:
            posts = await self._api.list_posts()
        except PostsAPIError as e:
            return self._fail("Failed to load posts", e)
        finally:
            self._loading = False

        self._entities = self._snapshot(posts)
        self._loaded = True
        logger.info("Loaded %d posts", len(self._entities))
        return Result.success(list(self._entities))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, draft: PostDraft | Mapping[str, Any]) -> Result[PostEntity]:
        draft = _as_draft(draft)
        if draft.is_blank:
            return self._reject_blank()

        try:
            post = await self._api.create_post(draft)
        except PostsAPIError as e:
            return self._fail("Failed to create post", e)

        entity = PostEntity.from_post(post)
        index = self._index(entity.id)
        if index is None:
            self._entities.insert(0, entity)
        else:
            logger.warning("Created post %s is already in the feed, replacing it", entity.id)
            self._entities[index] = entity
        logger.info("Created post %s", entity.id)
        self._notifier.success("Post created.")
        return Result.success(entity)

    def begin_edit(self, post_id: PostId) -> Result[PostEntity]:
        target = self.get(post_id)
        if target is None:
            logger.debug("begin_edit: no post %s", post_id)
            return Result.noop()
        for entity in self._entities:
            entity.editing = entity is target
        return Result.success(target)

    def cancel_edit(self, post_id: PostId) -> Result[PostEntity]:
        target = self.get(post_id)
        if target is None:
            logger.debug("cancel_edit: no post %s", post_id)
            return Result.noop()
        target.editing = False
        return Result.success(target)

    def toggle_edit(self, post_id: PostId) -> Result[PostEntity]:
        target = self.get(post_id)
        if target is not None and target.editing:
            return self.cancel_edit(post_id)
        return self.begin_edit(post_id)

    async def save(self, post_id: PostId, draft: PostDraft | Mapping[str, Any]) -> Result[PostEntity]:
        """Send an edit and, once confirmed, replace the post with the service's copy.

        The post is put in edit mode if it is not already, and stays there while
        the request is pending and after a failure, so the user can retry or
        cancel.
        """
        entity = self.get(post_id)
        if entity is None:
            logger.debug("save: no post %s", post_id)
            return Result.noop()
        key = _key(entity.id)
        if key in self._saving:
            logger.debug("save: post %s already has a save pending", post_id)
            return Result.noop()
        self.begin_edit(entity.id)

        draft = _as_draft(draft)
        if draft.is_blank:
            return self._reject_blank()

        self._saving.add(key)
        try:
            post = await self._api.update_post(entity.id, draft)
            if _key(post.id) != key:
                raise ServerError(f"Update for post {entity.id} returned post {post.id}")
        except PostsAPIError as e:
            return self._fail("Failed to update post", e)
        finally:
            self._saving.discard(key)

        index = self._index(key)
        if index is None:
            logger.info("Post %s was removed while saving, discarding update", entity.id)
            return Result.noop()

        updated = PostEntity.from_post(post)
        self._entities[index] = updated
        logger.info("Updated post %s", updated.id)
        self._notifier.success("Post updated.")
        return Result.success(updated)

    async def remove(self, post_id: PostId, confirmed: bool = True) -> Result[PostId]:
        """Delete a post. The caller is responsible for asking the user first."""
        if not confirmed:
            return Result.noop()
        entity = self.get(post_id)
        if entity is None:
            logger.debug("remove: no post %s", post_id)
            return Result.noop()
        key = _key(entity.id)
        if key in self._deleting:
            return Result.noop()

        self._deleting.add(key)
        try:
            await self._api.delete_post(entity.id)
        except PostsAPIError as e:
            return self._fail("Failed to delete post", e)
        finally:
            self._deleting.discard(key)

        index = self._index(key)
        if index is not None:
            del self._entities[index]
        logger.info("Deleted post %s", entity.id)
        self._notifier.success(f"Post {entity.id} deleted.")
        return Result.success(entity.id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        if self._owns_notifier:
            self._notifier.close()
        else:
            self._notifier.clear()
        if self._owns_api:
            await self._api.aclose()

    async def __aenter__(self) -> FeedStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
