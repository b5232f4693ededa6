from typing import Literal

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    session_secret_key: str  # Shared with the auth system that writes the actor into the session
    cors_origins: list[str] = []
    edit_window_seconds: int = 600  # Authors may edit their comment for 10 minutes
    cooldown_seconds: int = 10  # Minimum delay between two successful comments of one actor
    cooldown_backend: Literal["memory", "mongo"] = "memory"  # "mongo" when running several instances
    page_size: int = 10
    max_page_size: int = 50
    reply_preview_size: int = 3  # Oldest replies embedded in every root of a list page
    excerpt_length: int = 30  # Characters of the parent body quoted in reply context
    max_pins_per_content: int | None = None  # None: pinning is not limited

    model_config = {
        "env_file": [".env"],
        "env_prefix": "INKTHREAD_",
        "extra": "ignore",
    }
