# retailer_sync/services/retailer_service.py
import json
import logging
import os
from pathlib import Path
from typing import List, Mapping, Optional

from pydantic import ValidationError

from retailer_sync.core.config import Settings
from retailer_sync.core.exceptions import ConfigurationError, RetailerNotFoundError
from retailer_sync.schemas.retailer import RetailerConfig, StoreCredentials
from retailer_sync.services.inventory.models import LocationPolicy

logger = logging.getLogger(__name__)


class RetailerService:
    """
    Loads retailer configuration and resolves credentials.

    This is the only place that reads secrets from the environment; everything
    downstream receives ready-made ``StoreCredentials``.
    """

    def __init__(self, config_dir: str, environ: Optional[Mapping[str, str]] = None):
        self.config_dir = Path(config_dir)
        self._environ = os.environ if environ is None else environ

    def load_retailers(self) -> List[RetailerConfig]:
        """All retailers in the config directory, ordered by id. Invalid files are skipped with an error log."""
        if not self.config_dir.is_dir():
            raise ConfigurationError(f"Retailer config directory not found: {self.config_dir}")

        retailers = []
        for path in sorted(self.config_dir.glob("*.json")):
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
                raw.setdefault("id", path.stem)
                retailers.append(RetailerConfig.model_validate(raw))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.error(f"Skipping invalid retailer config {path.name}: {e}")
        return sorted(retailers, key=lambda r: r.id)

    def load_retailer_by_id(self, retailer_id: str) -> RetailerConfig:
        for retailer in self.load_retailers():
            if retailer.id == retailer_id:
                return retailer
        raise RetailerNotFoundError(f"Retailer with ID '{retailer_id}' not found")

    def retailers_for_inventory_sync(self, retailer_id: Optional[str] = None) -> List[RetailerConfig]:
        """
        With an id: that retailer, whatever its flags (RetailerNotFoundError if unknown).
        Without: every retailer that is enabled and has syncInventory on.
        """
        if retailer_id:
            return [self.load_retailer_by_id(retailer_id)]

        selected = []
        for retailer in self.load_retailers():
            if retailer.participates_in_inventory_sync:
                selected.append(retailer)
            else:
                logger.info(f"Skipping {retailer.name}: disabled or inventory sync disabled")
        return selected

    def resolve_credentials(self, retailer: RetailerConfig) -> StoreCredentials:
        if not retailer.domain:
            raise ConfigurationError(f"Missing domain for retailer {retailer.id}")
        token = retailer.api_token.get_secret_value() if retailer.api_token else ""
        if not token and retailer.api_token_env:
            token = self._environ.get(retailer.api_token_env, "")
            if not token:
                raise ConfigurationError(
                    f"Environment variable {retailer.api_token_env} for retailer {retailer.id} is not set"
                )
        if not token:
            raise ConfigurationError(f"Missing API token for retailer {retailer.id}")
        return StoreCredentials(domain=retailer.domain, access_token=token)

    @staticmethod
    def location_policy(retailer: RetailerConfig) -> LocationPolicy:
        if not retailer.target_location_id:
            raise ConfigurationError(f"Missing targetLocationId in configuration for retailer {retailer.id}")
        return LocationPolicy(authoritative_location_id=retailer.target_location_id)

    @staticmethod
    def source_credentials(settings: Settings) -> StoreCredentials:
        if not settings.LGL_STORE_DOMAIN or not settings.LGL_STORE_ACCESS_TOKEN:
            raise ConfigurationError("LGL_STORE_DOMAIN and LGL_STORE_ACCESS_TOKEN must be set")
        return StoreCredentials(domain=settings.LGL_STORE_DOMAIN, access_token=settings.LGL_STORE_ACCESS_TOKEN)
