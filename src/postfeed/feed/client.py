"""REST client for the remote posts collection."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from postfeed.core.credentials import CredentialProvider, no_credentials
from postfeed.core.http import make_httpx_client
from postfeed.feed.errors import ServerError, TransportError
from postfeed.feed.types import FeedConfig, Post, PostDraft, PostId

logger = logging.getLogger(__name__)


class BasePostsAPI(ABC):
    """The four operations the feed store needs from the posts service."""

    @abstractmethod
    async def list_posts(self) -> list[Post]:
        ...

    @abstractmethod
    async def create_post(self, draft: PostDraft) -> Post:
        ...

    @abstractmethod
    async def update_post(self, post_id: PostId, draft: PostDraft) -> Post:
        ...

    @abstractmethod
    async def delete_post(self, post_id: PostId) -> None:
        ...

    async def aclose(self) -> None:
        """Release any held resources."""


class PostsClient(BasePostsAPI):
    """``httpx`` implementation of :class:`BasePostsAPI`.

    Raises :class:`TransportError` when a request does not complete and
    :class:`ServerError` for failure statuses or bodies that are not posts.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialProvider = no_credentials,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._credentials = credentials
        self._owns_client = client is None
        self._client = client or make_httpx_client(timeout=timeout)

    @classmethod
    def from_config(cls, config: FeedConfig) -> PostsClient:
        return cls(
            config.base_url,
            credentials=config.credential_provider,
            timeout=config.timeout,
        )

    def _url(self, post_id: PostId | None = None) -> str:
        if post_id is None:
            return self._base_url
        return f"{self._base_url}/{quote(str(post_id), safe='')}"

    def _headers(self) -> dict[str, str]:
        token = self._credentials()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    async def _request(self, method: str, url: str, payload: dict[str, Any] | None = None) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            resp = await self._client.request(method, url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__) from e
        if not resp.is_success:
            raise ServerError(
                f"Request failed with status code {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise ServerError(
                f"Invalid JSON in response: {e}", status_code=resp.status_code
            ) from e

    @staticmethod
    def _to_post(data: Any, status_code: int) -> Post:
        try:
            return Post.model_validate(data)
        except ValidationError as e:
            raise ServerError(
                f"Unexpected post shape in response: {e.error_count()} error(s)",
                status_code=status_code,
            ) from e

    async def list_posts(self) -> list[Post]:
        resp = await self._request("GET", self._url())
        data = self._json(resp)
        if not isinstance(data, list):
            raise ServerError("Expected a list of posts", status_code=resp.status_code)
        return [self._to_post(item, resp.status_code) for item in data]

    async def create_post(self, draft: PostDraft) -> Post:
        resp = await self._request("POST", self._url(), draft.to_create_payload())
        return self._to_post(self._json(resp), resp.status_code)

    async def update_post(self, post_id: PostId, draft: PostDraft) -> Post:
        resp = await self._request("PUT", self._url(post_id), draft.to_update_payload())
        return self._to_post(self._json(resp), resp.status_code)

    async def delete_post(self, post_id: PostId) -> None:
        await self._request("DELETE", self._url(post_id))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
