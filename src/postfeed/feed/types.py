"""Post models and the tagged result type returned by feed operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from postfeed.core.credentials import CredentialProvider, credentials_from_settings, no_credentials

if TYPE_CHECKING:
    from postfeed.core.config import Settings

PostId = int | str


class Post(BaseModel):
    """Server-authoritative post record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: PostId
    content: str
    image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("imageUrl", "image_url"),
        serialization_alias="imageUrl",
    )
    author: str = ""
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "createdDateTime", "created_at"),
        serialization_alias="createdAt",
    )
    modified_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("modifiedAt", "modifiedDateTime", "modified_at"),
        serialization_alias="modifiedAt",
    )

    @field_validator("created_at", "modified_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_edited(self) -> bool:
        return (
            self.created_at is not None
            and self.modified_at is not None
            and self.created_at != self.modified_at
        )

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PostEntity(Post):
    """A post plus the client-local edit flag. ``editing`` is never serialized."""

    editing: bool = Field(default=False, exclude=True)

    @classmethod
    def from_post(cls, post: Post) -> PostEntity:
        return cls(**post.model_dump(), editing=False)

    def to_post(self) -> Post:
        return Post(**self.model_dump())


class PostDraft(BaseModel):
    """User input for creating or editing a post."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    image_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("imageUrl", "image_url"),
        serialization_alias="imageUrl",
    )

    @field_validator("image_url")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()

    def to_create_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"content": self.content}
        if self.image_url is not None:
            payload["imageUrl"] = self.image_url
        return payload

    def to_update_payload(self) -> dict[str, Any]:
        return {"content": self.content, "imageUrl": self.image_url}


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    SERVER = "server"


@dataclass
class FeedError:
    kind: ErrorKind
    message: str
    status_code: int | None = None


T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of a feed operation.

    Exactly one of: a value (``ok``), an ``error``, or ``skipped`` when the
    operation was a deliberate no-op (unknown id, request already pending,
    delete not confirmed).
    """

    value: T | None = None
    error: FeedError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: FeedError) -> Result[T]:
        return cls(error=error)

    @classmethod
    def noop(cls) -> Result[T]:
        return cls(skipped=True)


@dataclass
class FeedConfig:
    """Everything a feed store needs to reach the posts service."""

    base_url: str
    credential_provider: CredentialProvider = no_credentials
    timeout: float = 30.0
    notice_seconds: float = 3.0
    fallback_image: str = "/placeholder.png"
    sort_newest_first: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> FeedConfig:
        return cls(
            base_url=settings.base_url,
            credential_provider=credentials_from_settings(settings),
            timeout=settings.request_timeout,
            notice_seconds=settings.notice_seconds,
            fallback_image=settings.fallback_image,
            sort_newest_first=settings.sort_newest_first,
        )
