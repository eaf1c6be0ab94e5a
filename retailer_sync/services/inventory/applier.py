# retailer_sync/services/inventory/applier.py

import asyncio
import logging
from functools import partial
from typing import Any, Dict, List, Optional, Sequence

from retailer_sync.core.enums import OutcomeKind
from retailer_sync.core.exceptions import ShopifyServiceError
from retailer_sync.core.retry import RetryPolicy, with_retry
from retailer_sync.services.inventory.models import SyncOutcome, UpdateRequired
from retailer_sync.services.shopify.queries import SET_INVENTORY_QUANTITIES

logger = logging.getLogger(__name__)


def _format_user_errors(user_errors: Any) -> str:
    if not isinstance(user_errors, list):
        user_errors = [user_errors]
    messages = []
    for error in user_errors:
        if not isinstance(error, dict):
            messages.append(str(error))
            continue
        field = error.get("field")
        message = error.get("message", "Unknown error")
        if field:
            field_path = ".".join(str(part) for part in field) if isinstance(field, list) else str(field)
            messages.append(f"{field_path}: {message}")
        else:
            messages.append(str(message))
    return "; ".join(messages)


def build_set_quantities_input(decisions: Sequence[UpdateRequired]) -> Dict[str, Any]:
    """Absolute quantities, so replaying a decision converges on the same state."""
    return {
        "name": "available",
        "reason": "correction",
        "ignoreCompareQuantity": True,
        "quantities": [
            {
                "inventoryItemId": d.inventory_item_id,
                "locationId": d.location_id,
                "quantity": d.to_quantity,
            }
            for d in decisions
        ],
    }


class CorrectionApplier:
    """
    Writes ``UpdateRequired`` decisions to the target store.

    Decisions go out in fixed-size batches; writes within a batch run concurrently
    and the whole batch settles before the next starts, with a fixed pause in
    between. The pause is blind pacing, not adaptive backoff.

    ``userErrors`` in a response are a definitive rejection and are not retried.
    Transport failures are retried per ``retry_policy`` and then reported as failed.
    """

    def __init__(
        self,
        client,
        batch_size: int = 10,
        batch_delay: float = 2.0,
        retry_policy: Optional[RetryPolicy] = None,
        use_bulk_mutation: bool = False,
        bulk_mutation_size: int = 50,
    ):
        self.client = client
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.retry_policy = retry_policy or RetryPolicy()
        self.use_bulk_mutation = use_bulk_mutation
        self.bulk_mutation_size = max(1, min(bulk_mutation_size, 250))
        self._sleep = asyncio.sleep

    async def apply(self, decisions: Sequence[UpdateRequired]) -> List[SyncOutcome]:
        """One outcome per decision, in input order."""
        if not decisions:
            return []

        if self.use_bulk_mutation:
            chunk_size = self.bulk_mutation_size
            process = self._apply_bulk
        else:
            chunk_size = self.batch_size
            process = self._apply_concurrently

        outcomes: List[SyncOutcome] = []
        total_batches = (len(decisions) + chunk_size - 1) // chunk_size

        for i in range(0, len(decisions), chunk_size):
            batch = list(decisions[i:i + chunk_size])
            batch_num = i // chunk_size + 1
            logger.info(f"Applying batch {batch_num} of {total_batches} ({len(batch)} SKUs)")

            batch_outcomes = await process(batch)
            outcomes.extend(batch_outcomes)

            updated = sum(1 for o in batch_outcomes if o.kind == OutcomeKind.UPDATED)
            logger.info(f"Completed batch {batch_num}. Updated: {updated}/{len(batch)}")

            if i + chunk_size < len(decisions) and self.batch_delay > 0:
                logger.debug(f"Waiting {self.batch_delay}s before next batch...")
                await self._sleep(self.batch_delay)

        return outcomes

    async def _apply_concurrently(self, batch: List[UpdateRequired]) -> List[SyncOutcome]:
        return list(await asyncio.gather(*(self._apply_one(decision) for decision in batch)))

    async def _send(self, decisions: Sequence[UpdateRequired], description: str) -> Dict[str, Any]:
        variables = {"input": build_set_quantities_input(decisions)}
        data = await with_retry(
            partial(self.client.execute, SET_INVENTORY_QUANTITIES, variables),
            self.retry_policy,
            description=description,
            sleep=self._sleep,
        )
        payload = data.get("inventorySetQuantities") if isinstance(data, dict) else None
        if not isinstance(payload, dict):
            raise ValueError("response has no inventorySetQuantities payload")
        return payload

    async def _apply_one(self, decision: UpdateRequired) -> SyncOutcome:
        logger.debug(
            f"Setting {decision.sku} ({decision.inventory_item_id}) at {decision.location_id}: "
            f"{decision.from_quantity} -> {decision.to_quantity}"
        )
        try:
            payload = await self._send([decision], f"Inventory update for {decision.sku}")
        except (ShopifyServiceError, ValueError) as e:
            logger.error(f"Update failed for {decision.sku}: {e}")
            return SyncOutcome.failed(decision.sku, str(e).strip(), decision)

        user_errors = payload.get("userErrors") or []
        if user_errors:
            reason = _format_user_errors(user_errors)
            logger.error(f"Shopify rejected update for {decision.sku}: {reason}")
            return SyncOutcome.failed(decision.sku, reason, decision)

        logger.info(f"Updated SKU {decision.sku} ({decision.from_quantity} -> {decision.to_quantity})")
        return SyncOutcome.updated(decision)

    async def _apply_bulk(self, batch: List[UpdateRequired]) -> List[SyncOutcome]:
        """One multi-item mutation. Shopify applies it all-or-nothing, so outcomes are shared."""
        try:
            payload = await self._send(batch, f"Bulk inventory update ({len(batch)} SKUs)")
        except (ShopifyServiceError, ValueError) as e:
            logger.error(f"Bulk update of {len(batch)} SKUs failed: {e}")
            return [SyncOutcome.failed(d.sku, str(e).strip(), d) for d in batch]

        user_errors = payload.get("userErrors") or []
        if user_errors:
            reason = _format_user_errors(user_errors)
            logger.error(f"Shopify rejected bulk update of {len(batch)} SKUs: {reason}")
            return [SyncOutcome.failed(d.sku, reason, d) for d in batch]

        return [SyncOutcome.updated(d) for d in batch]
