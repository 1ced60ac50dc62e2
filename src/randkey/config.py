# src/randkey/config.py

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Library settings (Pydantic v2), read from the environment or a .env file.

    - RANDKEY_STORAGE_CLASS: TINYINT | SMALLINT | MEDIUMINT | INT | BIGINT
    - RANDKEY_DIGITS: exact decimal length of generated keys
    - RANDKEY_MAX_ATTEMPTS: existence checks per generate_unique_id call (0 = unbounded)
    - RANDKEY_MAX_INSERT_ATTEMPTS: constraint-violation retries at insert time
    - The host word size is detected at runtime and is not a setting.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------------------------
    # Key generation
    # ------------------------------------------------------------------------------------
    STORAGE_CLASS: str = Field(default="INT", alias="RANDKEY_STORAGE_CLASS")
    DIGITS: int = Field(default=10, alias="RANDKEY_DIGITS")
    MAX_ATTEMPTS: Optional[int] = Field(default=1000, alias="RANDKEY_MAX_ATTEMPTS")
    MAX_INSERT_ATTEMPTS: int = Field(default=3, ge=1, alias="RANDKEY_MAX_INSERT_ATTEMPTS")

    # ------------------------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------------------------
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=True)

    @field_validator("STORAGE_CLASS")
    @classmethod
    def _upper_storage_class(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("MAX_ATTEMPTS", mode="before")
    @classmethod
    def _unbounded_attempts(cls, v):
        # "" and 0 both mean no ceiling
        if v in (None, "", 0, "0"):
            return None
        return v

    @field_validator("MAX_ATTEMPTS")
    @classmethod
    def _positive_attempts(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("RANDKEY_MAX_ATTEMPTS must be >= 0")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def _log_level(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()
