from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ib_mount_path: str = "/ib"
    # Literal path segments compare exactly unless this is disabled.
    # Parameter values (ids) are never case-folded.
    ib_routes_case_sensitive: bool = True
    # When enabled, a single trailing slash is ignored ("/underlyings/" == "/underlyings").
    ib_routes_strip_trailing_slash: bool = False
    cors_allow_origins: list[str] = ["*"]

    class Config:
        env_file = ".env"
        env_prefix = ""
        case_sensitive = False


settings = Settings()
