from __future__ import annotations

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SLIGHTLY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    database_url: str = "sqlite+aiosqlite:///./slightly.db"

    # For local development
    auto_create_db: bool = False

    # Session cookie auth. In production, override via env.
    session_secret: SecretStr = SecretStr("dev-insecure-change-me")
    session_cookie_name: str = "slightly_session"

    log_level: str = "INFO"
    log_json: bool = False
    log_http_requests: bool = True

    site_name: str = "Slightly"
    theme_version: str = "1.0.0"

    # Scope of the color-scheme cookie written for anonymous visitors.
    # An empty domain means a host-only cookie.
    color_scheme_cookie_path: str = "/"
    color_scheme_cookie_domain: str = ""
    color_scheme_cookie_max_age: int = 60 * 60 * 24 * 365

    # Built client assets (`*.asset.json` manifests next to their `.js` files).
    assets_dir: Path = _PACKAGE_DIR / "public" / "js"

    rest_url_prefix: str = "api"
    # Endpoints (relative to the REST prefix) that anonymous callers may not read.
    restricted_rest_endpoints: tuple[str, ...] = ("/v1/media", "/v1/users")


def get_settings() -> Settings:
    return Settings()
