"""Image source selection with a local fallback and a generated placeholder."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

PRIMARY = 0
LOCAL_FALLBACK = 1
PLACEHOLDER = 2

DEFAULT_FALLBACK_IMAGE = "/placeholder.png"

_PLACEHOLDER_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="600" height="400">'
    '<rect fill="#ddd" width="100%" height="100%"/>'
    '<text x="50%" y="50%" dominant-baseline="middle" text-anchor="middle" '
    'fill="#666" font-size="20">Image failed</text></svg>'
)
PLACEHOLDER_DATA_URI = "data:image/svg+xml;utf8," + quote(_PLACEHOLDER_SVG, safe="")


class ImageResolver:
    """Maps a declared image URL and an attempt number to the source to show.

    Attempt 0 is the post's own URL, 1 a fixed local asset, 2 an inline SVG
    that cannot fail to load. Attempt 2 is terminal.
    """

    def __init__(self, fallback_image: str = DEFAULT_FALLBACK_IMAGE) -> None:
        self._fallback_image = fallback_image

    def resolve(self, declared_url: str | None, attempt: int) -> tuple[str | None, int]:
        attempt = min(max(attempt, PRIMARY), PLACEHOLDER)
        if attempt == PRIMARY:
            return (declared_url or None), LOCAL_FALLBACK
        if attempt == LOCAL_FALLBACK:
            return self._fallback_image, PLACEHOLDER
        return PLACEHOLDER_DATA_URI, PLACEHOLDER


class ImageSlot:
    """Attempt counter for one displayed image."""

    def __init__(self, declared_url: str | None, resolver: ImageResolver | None = None) -> None:
        self._resolver = resolver or ImageResolver()
        self._declared_url = declared_url or None
        self._attempt = PRIMARY

    @property
    def attempt(self) -> int:
        return self._attempt

    @property
    def declared_url(self) -> str | None:
        return self._declared_url

    @property
    def src(self) -> str | None:
        return self._resolver.resolve(self._declared_url, self._attempt)[0]

    @property
    def exhausted(self) -> bool:
        return self._attempt == PLACEHOLDER

    def fail(self) -> str | None:
        """Record a load failure for the current source and return the next one."""
        if self._declared_url is None or self.exhausted:
            return self.src
        _, self._attempt = self._resolver.resolve(self._declared_url, self._attempt)
        logger.debug("Image %s failed, now at attempt %d", self._declared_url, self._attempt)
        return self.src

    def reset(self, declared_url: str | None) -> None:
        """Start over, but only when the declared URL actually changed."""
        declared_url = declared_url or None
        if declared_url != self._declared_url:
            self._declared_url = declared_url
            self._attempt = PRIMARY


async def probe_image(client: httpx.AsyncClient, url: str, asset_base_url: str = "") -> bool:
    """Check whether ``url`` loads. Inline data URIs always do."""
    if url.startswith("data:"):
        return True
    if url.startswith("/"):
        if not asset_base_url:
            return False
        url = asset_base_url.rstrip("/") + url
    try:
        resp = await client.head(url, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug("Image probe failed for %s: %s", url, e)
        return False
    return resp.is_success


async def settle_slot(slot: ImageSlot, client: httpx.AsyncClient, asset_base_url: str = "") -> str | None:
    """Advance ``slot`` past every source that fails to load."""
    src = slot.src
    while src is not None and not slot.exhausted:
        if await probe_image(client, src, asset_base_url):
            return src
        src = slot.fail()
    return src
