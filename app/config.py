"""Configuration management for the paste document service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from app.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    store_type = settings.STORAGE_TYPE

**Step 3 — Override through the environment**::
    STORAGE_TYPE=redis KEY_GENERATOR_TYPE=phonetic uvicorn app.main:app
    DOCUMENTS='{"about": "about.md"}' uvicorn app.main:app

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- Unknown storage or key generator tags raise ValidationError, which aborts startup.
- Lengths and retry bounds must be positive integers.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.enums import KeyGeneratorType, StorageType
from app.keygen import ALPHANUMERIC


class Settings(BaseSettings):
    APP_NAME: str = "paste-service"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Documents
    MAX_LENGTH: int = Field(default=400_000, gt=0)
    KEY_LENGTH: int = Field(default=10, gt=0)

    # Key generation
    KEY_GENERATOR_TYPE: KeyGeneratorType = KeyGeneratorType.RANDOM
    KEY_GENERATOR_KEYSPACE: str = ALPHANUMERIC
    KEY_MAX_ATTEMPTS: int = Field(default=16, gt=0)
    KEY_GROWTH_THRESHOLD: int = Field(default=4, gt=0)

    # Storage
    STORAGE_TYPE: StorageType = StorageType.FILESYSTEM
    STORAGE_PATH: str = "data"
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_KEY_PREFIX: str = "doc:"

    # Static documents loaded as permanent at startup: name -> file path
    DOCUMENTS: dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
