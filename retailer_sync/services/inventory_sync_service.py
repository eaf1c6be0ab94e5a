# retailer_sync/services/inventory_sync_service.py
"""
Runs inventory reconciliation for every participating retailer.

Retailers are processed one after another so the load on the LGL store stays
predictable. A retailer whose pass fails (bad configuration, catalog listing
failure) is reported and the run moves on to the next one.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from retailer_sync.core.config import Settings
from retailer_sync.core.enums import OutcomeKind
from retailer_sync.core.exceptions import BaseServiceError
from retailer_sync.core.retry import RetryPolicy
from retailer_sync.schemas.retailer import RetailerConfig, StoreCredentials
from retailer_sync.services.activity_logger import ActivityLogger
from retailer_sync.services.inventory.accessor import CatalogAccessor
from retailer_sync.services.inventory.applier import CorrectionApplier
from retailer_sync.services.inventory.models import SyncSummary
from retailer_sync.services.inventory.orchestrator import InventorySyncOrchestrator
from retailer_sync.services.notification_service import EmailNotificationService
from retailer_sync.services.retailer_service import RetailerService
from retailer_sync.services.shopify.client import ShopifyGraphQLClient

logger = logging.getLogger(__name__)


@dataclass
class RetailerSyncResult:
    retailer_id: str
    retailer_name: str
    summary: Optional[SyncSummary] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class InventoryRunReport:
    started_at: datetime
    dry_run: bool = False
    results: List[RetailerSyncResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def failed_retailers(self) -> List[RetailerSyncResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_retailers)

    def print_summary(self):
        for result in self.results:
            if result.summary:
                result.summary.print_summary(result.retailer_name)
        print("\n" + "="*50)
        print("INVENTORY RUN")
        print("="*50)
        print(f"Started      : {self.started_at.isoformat()}")
        print(f"Duration     : {self.duration_seconds:.2f}s")
        print(f"Retailers    : {len(self.results)}")
        for result in self.results:
            if result.succeeded:
                print(f"- {result.retailer_name}: {result.summary.total} SKUs, "
                      f"{result.summary.count(OutcomeKind.UPDATED)} updated, "
                      f"{result.summary.count(OutcomeKind.FAILED)} failed")
            else:
                print(f"- {result.retailer_name}: FAILED - {result.error}")


class InventorySyncService:

    def __init__(
        self,
        settings: Settings,
        retailer_service: Optional[RetailerService] = None,
        notifier: Optional[EmailNotificationService] = None,
        client_factory: Optional[Callable[[StoreCredentials], object]] = None,
        session_factory: Optional[Callable] = None,
    ):
        self.settings = settings
        self.retailer_service = retailer_service or RetailerService(settings.RETAILERS_CONFIG_DIR)
        self.notifier = notifier
        self.client_factory = client_factory or self._default_client_factory
        self.session_factory = session_factory
        self.retry_policy = RetryPolicy.from_settings(settings)
        self._source_client = None

    def _default_client_factory(self, credentials: StoreCredentials) -> ShopifyGraphQLClient:
        return ShopifyGraphQLClient.from_settings(
            credentials.domain, credentials.access_token.get_secret_value(), self.settings
        )

    def _accessor(self, client, label: str) -> CatalogAccessor:
        return CatalogAccessor(
            client,
            page_size=self.settings.INVENTORY_PAGE_SIZE,
            lookup_batch_size=self.settings.INVENTORY_LOOKUP_BATCH_SIZE,
            retry_policy=self.retry_policy,
            store_label=label,
        )

    def _get_source_client(self):
        # One client (and pacer) for the LGL store, shared by the sequential retailer passes
        if self._source_client is None:
            credentials = self.retailer_service.source_credentials(self.settings)
            self._source_client = self.client_factory(credentials)
        return self._source_client

    def build_orchestrator(self, retailer: RetailerConfig, dry_run: bool = False) -> InventorySyncOrchestrator:
        """Resolve configuration for one retailer. Raises ConfigurationError on anything missing."""
        source_client = self._get_source_client()
        target_client = self.client_factory(self.retailer_service.resolve_credentials(retailer))
        applier = CorrectionApplier(
            target_client,
            batch_size=self.settings.INVENTORY_BATCH_SIZE,
            batch_delay=self.settings.INVENTORY_BATCH_DELAY_SECONDS,
            retry_policy=self.retry_policy,
            use_bulk_mutation=self.settings.INVENTORY_USE_BULK_MUTATION,
            bulk_mutation_size=self.settings.INVENTORY_BULK_MUTATION_SIZE,
        )
        return InventorySyncOrchestrator(
            source=self._accessor(source_client, "LGL"),
            target=self._accessor(target_client, retailer.name),
            applier=applier,
            dry_run=dry_run,
        )

    async def sync_retailer(self, retailer: RetailerConfig, dry_run: bool = False) -> RetailerSyncResult:
        logger.info(f"=== Inventory sync for {retailer.name} ({retailer.id}) ===")
        try:
            policy = self.retailer_service.location_policy(retailer)
            orchestrator = self.build_orchestrator(retailer, dry_run=dry_run)
            summary = await orchestrator.run(policy)
        except BaseServiceError as e:
            logger.error(f"Inventory sync failed for {retailer.name}: {e}")
            return RetailerSyncResult(retailer.id, retailer.name, error=f"{type(e).__name__}: {e}".strip())
        return RetailerSyncResult(retailer.id, retailer.name, summary=summary)

    async def run(self, retailer_id: Optional[str] = None, dry_run: bool = False) -> InventoryRunReport:
        """
        Sync the selected retailers. Raises RetailerNotFoundError for an unknown id
        and ConfigurationError when the retailer config directory is missing.
        """
        report = InventoryRunReport(started_at=datetime.now(timezone.utc), dry_run=dry_run)
        started = time.monotonic()

        retailers = self.retailer_service.retailers_for_inventory_sync(retailer_id)
        logger.info(f"Processing inventory sync for {len(retailers)} retailer(s)")

        for retailer in retailers:
            result = await self.sync_retailer(retailer, dry_run=dry_run)
            report.results.append(result)
            await self._record_activity(result)
            if not result.succeeded and self.notifier:
                await self.notifier.send_error_notification(
                    RuntimeError(result.error),
                    {"operation": "inventory", "retailer": result.retailer_name},
                )

        report.duration_seconds = time.monotonic() - started

        if self.notifier and report.results:
            await self.notifier.send_inventory_alert(report.results)

        return report

    async def _record_activity(self, result: RetailerSyncResult):
        if self.session_factory is None:
            return
        try:
            async with self.session_factory() as session:
                activity_logger = ActivityLogger(session)
                await activity_logger.log_inventory_sync(
                    result.retailer_id, result.retailer_name, summary=result.summary, error=result.error
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Could not record activity for {result.retailer_name}: {e}")
