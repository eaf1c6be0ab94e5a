# retailer_sync/services/inventory/orchestrator.py
"""
One reconciliation pass for one retailer.

The retailer's own catalog defines which SKUs are reconciled; SKUs that only
exist in the source store are never pushed into a retailer.
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

from retailer_sync.core.enums import DecisionKind, OutcomeKind
from retailer_sync.core.exceptions import ConfigurationError, ShopifyServiceError, SyncError
from retailer_sync.services.inventory.accessor import CatalogAccessor
from retailer_sync.services.inventory.applier import CorrectionApplier
from retailer_sync.services.inventory.engine import decide
from retailer_sync.services.inventory.models import (
    LocationPolicy,
    ReconciliationDecision,
    StockRecord,
    SyncOutcome,
    SyncSummary,
    UpdateRequired,
)

logger = logging.getLogger(__name__)


class InventorySyncOrchestrator:

    def __init__(
        self,
        source: CatalogAccessor,
        target: CatalogAccessor,
        applier: CorrectionApplier,
        dry_run: bool = False,
    ):
        self.source = source
        self.target = target
        self.applier = applier
        self.dry_run = dry_run

    async def run(self, policy: LocationPolicy) -> SyncSummary:
        """
        Runs the pass and returns its summary.

        Raises SyncError when the target catalog cannot be listed; that is the
        only fatal step. Per-SKU lookup or write failures end up as FAILED outcomes.
        """
        if policy is None or not policy.authoritative_location_id:
            raise ConfigurationError("Location policy has no authoritative location id")

        started = time.monotonic()
        logger.info(
            f"Starting inventory sync {self.source.store_label} -> {self.target.store_label} "
            f"(location {policy.authoritative_location_id}{', dry run' if self.dry_run else ''})"
        )

        try:
            skus = await self.target.list_all_skus()
        except ShopifyServiceError as e:
            raise SyncError(f"Could not list SKUs on {self.target.store_label}: {e}") from e
        logger.info(f"Found {len(skus)} SKUs to reconcile")

        source_records, source_failures = await self._fetch_records(self.source, skus)
        target_records, target_failures = await self._fetch_records(self.target, skus)

        outcomes: Dict[str, SyncOutcome] = {}
        updates: List[UpdateRequired] = []

        for sku in skus:
            failure = source_failures.get(sku) or target_failures.get(sku)
            if failure:
                outcomes[sku] = SyncOutcome.failed(sku, failure)
                continue

            decision = decide(sku, source_records.get(sku), target_records.get(sku), policy)
            self._log_decision(decision)
            if isinstance(decision, UpdateRequired):
                if self.dry_run:
                    outcomes[sku] = SyncOutcome.would_update(decision)
                else:
                    updates.append(decision)
            else:
                outcomes[sku] = SyncOutcome.from_decision(decision)

        if updates:
            logger.info(f"{len(updates)} SKUs need an inventory correction")
            for outcome in await self.applier.apply(updates):
                outcomes[outcome.sku] = outcome

        summary = SyncSummary.from_outcomes(
            (outcomes[sku] for sku in skus),
            dry_run=self.dry_run,
            duration_seconds=time.monotonic() - started,
        )
        logger.info(
            f"Inventory sync completed: {summary.count(OutcomeKind.UPDATED)} updated, "
            f"{summary.count(OutcomeKind.NO_UPDATE_NEEDED)} unchanged, "
            f"{summary.count(OutcomeKind.LOCATION_MISMATCH)} location mismatches, "
            f"{summary.count(OutcomeKind.FAILED)} failed"
        )
        return summary

    async def _fetch_records(
        self, accessor: CatalogAccessor, skus: List[str]
    ) -> Tuple[Dict[str, Optional[StockRecord]], Dict[str, str]]:
        """
        Bulk lookup with a per-SKU fallback for unresolved batches.
        Returns (records, failures) where failures maps SKU -> error message.
        """
        result = await accessor.bulk_fetch_stock(skus)
        records: Dict[str, Optional[StockRecord]] = dict(result.records)
        failures: Dict[str, str] = {}

        if result.unresolved:
            logger.warning(
                f"Falling back to single-SKU lookups for {len(result.unresolved)} SKUs on {accessor.store_label}"
            )
        for sku in result.unresolved:
            try:
                records[sku] = await accessor.fetch_stock(sku)
            except ShopifyServiceError as e:
                logger.error(f"Stock lookup for {sku} on {accessor.store_label} failed: {e}")
                failures[sku] = f"Lookup failed on {accessor.store_label}: {e}".strip()
        return records, failures

    @staticmethod
    def _log_decision(decision: ReconciliationDecision):
        sku = decision.sku
        kind = decision.kind
        if kind == DecisionKind.SOURCE_MISSING:
            logger.info(f"Source not found: {sku}")
        elif kind == DecisionKind.SOURCE_NO_STOCK:
            logger.info(f"Source has no available quantity: {sku}")
        elif kind == DecisionKind.TARGET_MISSING:
            logger.info(f"Target not found: {sku} (source had {decision.source_quantity})")
        elif kind == DecisionKind.LOCATION_MISMATCH:
            logger.warning(
                f"Location mismatch for {sku}: expected {decision.expected_location_id}, "
                f"found {decision.actual_location_id or 'no locations'}"
            )
        elif kind == DecisionKind.NO_ACTION_NEEDED:
            logger.debug(f"No update needed: {sku} ({decision.quantity})")
        else:
            logger.debug(f"Update required: {sku} ({decision.from_quantity} -> {decision.to_quantity})")
