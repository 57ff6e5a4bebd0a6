# /search_gateway/config/settings.py

import sys
from typing import Annotated, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    # Catalog search backend
    catalog_account: str = "storefront"
    catalog_base_url: str = "http://storefront.vtexcommercestable.com.br/api/catalog_system"
    catalog_path_prefix: str = "/proxy/catalog"
    catalog_app_key: str | None = None
    catalog_app_token: str | None = None
    # Accounts whose search paths are sent without the @perc@/@dot@ escaping
    raw_uri_accounts: Annotated[List[str], NoDecode] = []

    # Search limits
    max_results_window: int = 2500

    # Persisted mapping store
    redis_url: str = "redis://localhost:6379"
    compatibility_cache_ttl: int = 60 * 60 * 24

    # Translation (upstream of the search core)
    translation_service_url: str | None = None
    store_default_locale: str | None = None

    # HTTP transport
    http_timeout: float = 10.0
    http_connect_timeout: float = 5.0
    http_retry_attempts: int = 3

    # Deployment
    environment: str = Field(default="production")
    api_version: str = "v1"
    workers: int = 4
    rate_limit_per_minute: int = 600
    cors_allowed_origins: Annotated[List[str], NoDecode] = []
    api_key: str | None = None

    # ---------------- Validators ---------------- #

    @field_validator("cors_allowed_origins", "raw_uri_accounts", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """
        Accept both comma-separated strings and lists, so values can come
        straight from environment variables.
        """
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("max_results_window")
    @classmethod
    def window_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("MAX_RESULTS_WINDOW must be a positive integer")
        return v

    @property
    def catalog_url(self) -> str:
        return f"{self.catalog_base_url.rstrip('/')}{self.catalog_path_prefix}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def validate_environment(settings_obj: Settings):
    try:
        if not settings_obj.catalog_account:
            raise ValueError("CATALOG_ACCOUNT is required")

        if settings_obj.environment == "production":
            for var in ["catalog_base_url", "redis_url"]:
                if not getattr(settings_obj, var):
                    raise ValueError(f"{var.upper()} is required in production")

        return settings_obj

    except Exception as e:
        print(f"--- [ERROR] Environment validation failed: {e}")
        sys.exit(1)


settings = Settings()
validate_environment(settings)
