# retailer_sync/core/config.py

import os
from functools import lru_cache
from typing import List, Optional, Annotated
from pydantic import ConfigDict, BeforeValidator
from pydantic_settings import BaseSettings, NoDecode


def _parse_email_list(value):
    if value in (None, "", []):
        return []
    if isinstance(value, str):
        return [email.strip() for email in value.split(",") if email.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(email).strip() for email in value if str(email).strip()]
    return []


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # LGL store (source of truth)
    LGL_STORE_DOMAIN: str = ""
    LGL_STORE_ACCESS_TOKEN: str = ""

    # Shopify Admin API
    SHOPIFY_API_VERSION: str = "2025-04"
    SHOPIFY_REQUEST_TIMEOUT: float = 30.0
    SHOPIFY_REQUESTS_PER_SECOND: float = 2.0
    SHOPIFY_MAX_CONCURRENT_REQUESTS: int = 10

    # Retailer configuration (one JSON file per retailer)
    RETAILERS_CONFIG_DIR: str = "config/retailers"

    # Inventory reconciliation
    INVENTORY_PAGE_SIZE: int = 250           # Shopify caps connections at 250
    INVENTORY_LOOKUP_BATCH_SIZE: int = 100   # SKUs per bulk stock query
    INVENTORY_BATCH_SIZE: int = 10           # concurrent writes per batch
    INVENTORY_BATCH_DELAY_SECONDS: float = 2.0
    INVENTORY_MAX_RETRIES: int = 3
    INVENTORY_RETRY_BASE_DELAY: float = 1.0
    INVENTORY_RETRY_JITTER: float = 0.0
    INVENTORY_USE_BULK_MUTATION: bool = False
    INVENTORY_BULK_MUTATION_SIZE: int = 50

    # Activity log (optional)
    DATABASE_URL: str = ""

    # Email notifications
    NOTIFICATION_EMAILS: Annotated[List[str], NoDecode, BeforeValidator(lambda v: _parse_email_list(v))] = []

    # SMTP / Email
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    SMTP_TIMEOUT: int = 30
    SMTP_FROM_EMAIL: Optional[str] = None
    SMTP_FROM_NAME: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists(os.environ.get('ENV_FILE', '.env')) else None,
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file on every call"""
    return Settings()


def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
