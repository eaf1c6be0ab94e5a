"""
Retailer configuration schemas.

The JSON files use camelCase keys (``targetLocationId``, ``syncInventory``);
the models accept either spelling.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class RetailerSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool = True
    sync_inventory: bool = Field(default=False, alias="syncInventory")


class RetailerConfig(BaseModel):
    """One retailer storefront as configured on disk."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    domain: Optional[str] = None
    api_token: Optional[SecretStr] = Field(default=None, alias="apiToken")
    # Name of an environment variable holding the token, resolved before any client is built
    api_token_env: Optional[str] = Field(default=None, alias="apiTokenEnv")
    target_location_id: Optional[str] = Field(default=None, alias="targetLocationId")
    settings: RetailerSettings = Field(default_factory=RetailerSettings)

    @property
    def participates_in_inventory_sync(self) -> bool:
        return self.settings.enabled and self.settings.sync_inventory


class StoreCredentials(BaseModel):
    """A store domain with its access token already resolved."""
    model_config = ConfigDict(frozen=True)

    domain: str
    access_token: SecretStr
