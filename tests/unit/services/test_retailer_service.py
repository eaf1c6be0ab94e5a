import json

import pytest

from retailer_sync.core.exceptions import ConfigurationError, RetailerNotFoundError
from retailer_sync.services.retailer_service import RetailerService


def _write(directory, stem, **config):
    (directory / f"{stem}.json").write_text(json.dumps(config))


@pytest.fixture
def config_dir(tmp_path):
    _write(
        tmp_path, "nationwide-plants",
        name="Nationwide Plants",
        domain="nationwide-plants.myshopify.com",
        apiTokenEnv="NATIONWIDE_PLANTS_TOKEN",
        targetLocationId="gid://shopify/Location/9001",
        settings={"enabled": True, "syncInventory": True},
    )
    _write(
        tmp_path, "garden-gems",
        name="Garden Gems",
        domain="garden-gems.myshopify.com",
        apiToken="shpat_inline",
        targetLocationId="gid://shopify/Location/42",
        settings={"enabled": True, "syncInventory": False},
    )
    _write(
        tmp_path, "closed-shop",
        name="Closed Shop",
        domain="closed.myshopify.com",
        apiToken="shpat_closed",
        settings={"enabled": False, "syncInventory": True},
    )
    (tmp_path / "broken.json").write_text("{not json")
    return tmp_path


def test_load_retailers_uses_file_stem_as_id(config_dir):
    retailers = RetailerService(str(config_dir)).load_retailers()
    assert [r.id for r in retailers] == ["closed-shop", "garden-gems", "nationwide-plants"]
    nationwide = retailers[2]
    assert nationwide.target_location_id == "gid://shopify/Location/9001"
    assert nationwide.settings.sync_inventory is True


def test_missing_config_directory(tmp_path):
    with pytest.raises(ConfigurationError):
        RetailerService(str(tmp_path / "nope")).load_retailers()


def test_selects_enabled_retailers_with_inventory_sync(config_dir):
    selected = RetailerService(str(config_dir)).retailers_for_inventory_sync()
    assert [r.id for r in selected] == ["nationwide-plants"]


def test_explicit_id_ignores_flags(config_dir):
    selected = RetailerService(str(config_dir)).retailers_for_inventory_sync("garden-gems")
    assert [r.id for r in selected] == ["garden-gems"]


def test_unknown_retailer_id(config_dir):
    with pytest.raises(RetailerNotFoundError):
        RetailerService(str(config_dir)).retailers_for_inventory_sync("does-not-exist")


def test_resolve_credentials_from_named_environment_variable(config_dir):
    service = RetailerService(str(config_dir), environ={"NATIONWIDE_PLANTS_TOKEN": "shpat_env"})
    credentials = service.resolve_credentials(service.load_retailer_by_id("nationwide-plants"))
    assert credentials.domain == "nationwide-plants.myshopify.com"
    assert credentials.access_token.get_secret_value() == "shpat_env"


def test_inline_token_is_used_as_is(config_dir):
    service = RetailerService(str(config_dir), environ={})
    credentials = service.resolve_credentials(service.load_retailer_by_id("garden-gems"))
    assert credentials.access_token.get_secret_value() == "shpat_inline"


def test_unset_environment_variable_is_a_configuration_error(config_dir):
    service = RetailerService(str(config_dir), environ={})
    with pytest.raises(ConfigurationError, match="NATIONWIDE_PLANTS_TOKEN"):
        service.resolve_credentials(service.load_retailer_by_id("nationwide-plants"))


def test_location_policy(config_dir):
    service = RetailerService(str(config_dir))
    policy = service.location_policy(service.load_retailer_by_id("nationwide-plants"))
    assert policy.authoritative_location_id == "gid://shopify/Location/9001"

    with pytest.raises(ConfigurationError, match="targetLocationId"):
        service.location_policy(service.load_retailer_by_id("closed-shop"))


def test_source_credentials(settings):
    credentials = RetailerService.source_credentials(settings)
    assert credentials.domain == "lgl-test.myshopify.com"

    with pytest.raises(ConfigurationError):
        RetailerService.source_credentials(settings.model_copy(update={"LGL_STORE_ACCESS_TOKEN": ""}))


def test_retailer_without_domain_loads_but_has_no_credentials(tmp_path):
    _write(
        tmp_path, "no-domain",
        name="No Domain", apiToken="shpat_x", targetLocationId="gid://shopify/Location/1",
        settings={"syncInventory": True},
    )
    service = RetailerService(str(tmp_path), environ={})

    assert [r.id for r in service.retailers_for_inventory_sync()] == ["no-domain"]
    with pytest.raises(ConfigurationError, match="Missing domain for retailer no-domain"):
        service.resolve_credentials(service.load_retailer_by_id("no-domain"))
