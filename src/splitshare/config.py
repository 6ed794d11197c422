from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, populate_by_name=True
    )

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")
    # accepts "COP,USD" as well as a JSON array
    supported_currencies: Annotated[list[str], NoDecode] = Field(["COP", "USD", "EUR"], alias="SUPPORTED_CURRENCIES")
    default_currency: str = Field("COP", alias="DEFAULT_CURRENCY")

    @field_validator("supported_currencies", mode="before")
    @classmethod
    def split_currencies(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        if value.strip().startswith("["):
            return json.loads(value)
        return [code for code in value.split(",") if code.strip()]

    @field_validator("supported_currencies", mode="after")
    @classmethod
    def upper_currencies(cls, value: list[str]) -> list[str]:
        return [code.strip().upper() for code in value]

    @field_validator("default_currency", mode="after")
    @classmethod
    def upper_default(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
