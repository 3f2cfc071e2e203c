"""Centralized library configuration.

All settings are read from environment variables prefixed with PGNTREE_
(or a .env.pgntree file). Every field has a default, so nothing needs to be
set for normal use; callers can also pass an explicit Settings instance to
read_pgn() and Game.to_pgn().
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PGNTREE_",
        env_file=".env.pgntree", env_file_encoding="utf-8",
        extra="ignore",
    )

    # Writer
    max_width: int = Field(default=80, ge=0)   # 0 = no wrapping
    seven_tag_roster: bool = False

    # Reader
    max_variation_depth: int = Field(default=128, ge=1)

    @property
    def wrap_width(self) -> int | None:
        """Line width for the writer, or None when wrapping is off."""
        return self.max_width or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
