"""
Centralized configuration for the DecoDocs backend.

Settings are resolved from an ordered list of named sources. The first
source that defines a value wins:

1. init     - keyword arguments passed to Settings(...)
2. env      - process environment variables
3. dotenv   - the .env file
4. remote   - the admin_constants table (only when REMOTE_CONFIG_ENABLED)
5. defaults - the field defaults below

Module-specific settings should be namespaced (e.g., SUPABASE_*, GEMINI_*).
"""

import logging
from functools import lru_cache
from typing import Any

from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

REMOTE_CONFIG_TABLE = "admin_constants"


class RemoteConstantsSource(PydanticBaseSettingsSource):
    """
    Settings source backed by the admin_constants table in Supabase.

    Each row is a (key, value) pair whose key matches a Settings field name.
    Lets operators tune quota constants without a redeploy. Disabled unless
    REMOTE_CONFIG_ENABLED is set by a higher-precedence source.
    """

    def __init__(self, settings_cls: type[BaseSettings], enabled: bool, url: str, key: str):
        super().__init__(settings_cls)
        self._enabled = enabled
        self._url = url
        self._key = key

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        # Values are loaded in bulk by __call__
        return None, field_name, False

    def _fetch_rows(self) -> list[dict]:
        from supabase import create_client

        client = create_client(self._url, self._key)
        result = client.table(REMOTE_CONFIG_TABLE).select("key, value").execute()
        return result.data or []

    def __call__(self) -> dict[str, Any]:
        if not self._enabled or not self._url or not self._key:
            return {}

        try:
            rows = self._fetch_rows()
        except Exception:
            logger.warning("Could not load remote constants, using local configuration")
            return {}

        fields = self.settings_cls.model_fields
        return {
            row["key"]: row["value"]
            for row in rows
            if row.get("key") in fields and row.get("value") is not None
        }


class Settings(BaseSettings):
    """Application settings resolved from the configured sources."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "DecoDocs API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_db_url: str = ""

    # Gemini
    google_api_key: str = ""
    gemini_model_name: str = "gemini-2.5-flash"
    gemini_timeout_seconds: float = 60.0

    # Document type catalog
    document_types_index_url: str = (
        "https://raw.githubusercontent.com/MaxSmile/decadocs/main/web/public/"
        "classifications/document-types.index.json"
    )
    validation_spec_base_url: str = (
        "https://raw.githubusercontent.com/MaxSmile/decadocs/main/web/public/"
        "classifications/validation"
    )

    # Scan detection
    min_chars_per_page: int = 30
    scan_ratio_threshold: float = 0.20

    # Size limits for non-Pro tiers
    free_max_total_chars: int = 120_000

    # Token budgets
    anon_tokens_per_uid: int = 20_000
    free_tokens_per_day: int = 40_000

    # Retention for rolling daily usage rows
    ttl_days_usage_docs: int = 30

    # Feature flags
    remote_config_enabled: bool = False
    use_in_memory_store: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        local: dict[str, Any] = {}
        for source in (dotenv_settings, env_settings, init_settings):
            local.update(source())

        remote = RemoteConstantsSource(
            settings_cls,
            enabled=str(local.get("remote_config_enabled", "false")).lower()
            in ("1", "true", "yes", "on"),
            url=local.get("supabase_url", ""),
            key=local.get("supabase_service_role_key", ""),
        )
        return init_settings, env_settings, dotenv_settings, remote


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()

