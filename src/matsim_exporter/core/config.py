from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogFormat = Literal["json", "console"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MATSIM_EXPORTER_",
        env_file=".env",
        extra="ignore",
    )

    output_dir: Path = Field(default=Path("output"))
    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="console")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings()
