# tests/conftest.py
import pytest

from retailer_sync.core.config import Settings
from retailer_sync.core.retry import RetryPolicy
from retailer_sync.services.inventory.models import LocationPolicy
from tests.mocks import MockShopifyStore

LGL_LOCATION = "gid://shopify/Location/1001"
RETAILER_LOCATION = "gid://shopify/Location/9001"


@pytest.fixture
def settings():
    """Provide test settings (never read from .env)"""
    return Settings(
        _env_file=None,
        LGL_STORE_DOMAIN="lgl-test.myshopify.com",
        LGL_STORE_ACCESS_TOKEN="shpat_lgl_test",
        RETAILERS_CONFIG_DIR="config/retailers",
        INVENTORY_BATCH_DELAY_SECONDS=0.0,
        INVENTORY_RETRY_BASE_DELAY=0.0,
        DATABASE_URL="",
        SMTP_HOST="smtp.example.com",
        SMTP_USERNAME="sync@example.com",
        SMTP_PASSWORD="secret",
        NOTIFICATION_EMAILS=["ops@example.com"],
    )


@pytest.fixture
def fast_retry():
    """Three retries, no waiting"""
    return RetryPolicy(max_retries=3, base_delay=0.0)


@pytest.fixture
def policy():
    return LocationPolicy(authoritative_location_id=RETAILER_LOCATION)


@pytest.fixture
def source_store():
    return MockShopifyStore("lgl-test.myshopify.com")


@pytest.fixture
def target_store():
    return MockShopifyStore("retailer-test.myshopify.com")
