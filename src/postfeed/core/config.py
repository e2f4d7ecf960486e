"""Client configuration via environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "POSTFEED_", "env_file": ".env", "extra": "ignore"}

    # Remote posts collection
    base_url: str = "http://localhost:8080/api/facebook/posts"
    request_timeout: float = 30.0

    # Bearer credential; the token file under data_dir is used when empty
    api_token: str = ""

    # Paths
    data_dir: Path = Path("./data")

    # Status notices
    notice_seconds: float = 3.0

    # Images
    fallback_image: str = "/placeholder.png"
    asset_base_url: str = ""  # where relative image paths are served from

    # Listing order
    sort_newest_first: bool = True

    # Logging
    log_level: str = "WARNING"

    @property
    def credentials_path(self) -> Path:
        return self.data_dir / "credentials" / "token.json"

    @property
    def app_log_path(self) -> Path:
        return self.data_dir / "logs" / "postfeed.log"

    @property
    def resolved_asset_base_url(self) -> str:
        """Asset origin, defaulting to the scheme and host of ``base_url``."""
        if self.asset_base_url:
            return self.asset_base_url.rstrip("/")
        scheme, _, rest = self.base_url.partition("://")
        host = rest.split("/", 1)[0]
        return f"{scheme}://{host}" if host else ""


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
