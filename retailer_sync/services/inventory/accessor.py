# retailer_sync/services/inventory/accessor.py

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence

from retailer_sync.core.exceptions import ShopifyAPIError, ShopifyServiceError
from retailer_sync.core.retry import RetryPolicy, with_retry
from retailer_sync.services.inventory.models import LocationLevel, StockRecord
from retailer_sync.services.shopify.queries import LIST_VARIANT_SKUS, VARIANT_STOCK_BY_SKU

logger = logging.getLogger(__name__)

# Matches inventoryLevels(first: 10) in VARIANT_STOCK_BY_SKU
INVENTORY_LEVELS_PER_VARIANT = 10
MAX_QUERY_COST = 1000


def lookup_query_cost(page_size: int) -> int:
    """
    Requested cost of one VARIANT_STOCK_BY_SKU page. A connection costs 2 plus
    ``first`` times its node cost and every object costs 1, so a variant is itself,
    its inventoryItem and an inventoryLevels connection of level + location nodes.
    """
    per_variant = 1 + 1 + 2 + INVENTORY_LEVELS_PER_VARIANT * 2
    return 2 + page_size * per_variant


@dataclass
class BulkStockResult:
    """
    records: SKUs that were found, keyed by SKU
    unresolved: SKUs whose batch failed; absent from ``records`` but NOT known to be missing
    """
    records: Dict[str, StockRecord] = field(default_factory=dict)
    unresolved: List[str] = field(default_factory=list)


def sku_search_query(skus: Iterable[str]) -> str:
    """Shopify search syntax matching any of ``skus`` exactly, e.g. ``sku:"A" OR sku:"B"``."""
    terms = []
    for sku in skus:
        escaped = sku.replace("\\", "\\\\").replace('"', '\\"')
        terms.append(f'sku:"{escaped}"')
    return " OR ".join(terms)


def parse_stock_record(node: Any) -> Optional[StockRecord]:
    """
    Build a StockRecord from a ``productVariants`` node.
    Returns None (with a warning) when the node is missing the fields we need.
    """
    sku = node.get("sku") if isinstance(node, dict) else None
    try:
        inventory_item = node["inventoryItem"]
        if not inventory_item:
            logger.warning(f"No inventory item for SKU {sku}")
            return None

        levels = []
        for edge in inventory_item["inventoryLevels"]["edges"]:
            level = edge["node"]
            available = None
            for quantity in level.get("quantities") or []:
                if quantity.get("name") == "available":
                    available = quantity.get("quantity")
                    break
            if available is not None and (isinstance(available, bool) or not isinstance(available, int)):
                raise ValueError(f"non-integer available quantity {available!r}")
            levels.append(LocationLevel(location_id=level["location"]["id"], available=available))

        return StockRecord(
            sku=node["sku"],
            variant_id=node["id"],
            inventory_item_id=inventory_item["id"],
            locations=tuple(levels),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Malformed variant record for SKU {sku}, treating as not found: {e!r}")
        return None


class CatalogAccessor:
    """
    Reads SKUs and stock levels from one store.

    Every request goes through ``with_retry``; transient failures are retried
    per page, and anything that survives the retries propagates to the caller.
    """

    MAX_PAGE_SIZE = 250
    MAX_LOOKUP_BATCH_SIZE = 100
    # lookup_query_cost(25) == 602 and lookup_query_cost(5) == 122, both under MAX_QUERY_COST
    LOOKUP_PAGE_SIZE = 25
    SINGLE_LOOKUP_PAGE_SIZE = 5

    def __init__(
        self,
        client,
        page_size: int = 250,
        lookup_batch_size: int = 100,
        retry_policy: Optional[RetryPolicy] = None,
        store_label: Optional[str] = None,
    ):
        self.client = client
        self.page_size = max(1, min(page_size, self.MAX_PAGE_SIZE))
        self.lookup_batch_size = max(1, min(lookup_batch_size, self.MAX_LOOKUP_BATCH_SIZE))
        self.retry_policy = retry_policy or RetryPolicy()
        self.store_label = store_label or getattr(client, "store_domain", "store")

    async def _paginate(
        self,
        query: str,
        variables: Dict[str, Any],
        page_size: int,
        description: str,
        estimated_cost: int = 10,
    ) -> AsyncIterator[List[Dict[str, Any]]]:
        """Yields the edges of each ``productVariants`` page until ``hasNextPage`` is false."""
        after = None
        page_num = 0
        while True:
            page_num += 1
            page_vars = {**variables, "first": page_size, "after": after}
            data = await with_retry(
                partial(self.client.execute, query, page_vars, estimated_cost),
                self.retry_policy,
                description=f"{description} on {self.store_label} (page {page_num})",
            )

            connection = data.get("productVariants") if isinstance(data, dict) else None
            if not isinstance(connection, dict) or not isinstance(connection.get("edges"), list):
                raise ShopifyAPIError(f"{description}: response has no productVariants connection")

            edges = connection["edges"]
            yield edges

            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return

            after = page_info.get("endCursor") or (edges[-1].get("cursor") if edges else None)
            if not after:
                raise ShopifyAPIError(f"{description}: hasNextPage is set but no cursor was returned")

    async def list_all_skus(self) -> List[str]:
        """
        Every non-blank SKU in the store, in catalog order. A SKU shared by several
        variants is listed once.
        """
        skus: List[str] = []
        seen = set()
        page_num = 0

        logger.info(f"Fetching all SKUs from {self.store_label} (page size: {self.page_size})...")
        async for edges in self._paginate(LIST_VARIANT_SKUS, {}, self.page_size, "SKU listing"):
            page_num += 1
            new_count = 0
            for edge in edges:
                node = edge.get("node") if isinstance(edge, dict) else None
                sku = node.get("sku") if isinstance(node, dict) else None
                if not isinstance(sku, str) or not sku:
                    continue
                if sku in seen:
                    logger.warning(f"Duplicate SKU {sku} in {self.store_label}; keeping the first variant")
                    continue
                seen.add(sku)
                skus.append(sku)
                new_count += 1
            logger.debug(f"Fetched page {page_num}: {new_count} SKUs (total: {len(skus)})")

        logger.info(f"Completed fetching SKUs from {self.store_label}. Total: {len(skus)}")
        return skus

    async def _lookup(self, skus: Sequence[str], page_size: int) -> Dict[str, StockRecord]:
        wanted = set(skus)
        seen = set()
        records: Dict[str, StockRecord] = {}
        variables = {"query": sku_search_query(skus)}

        async for edges in self._paginate(
            VARIANT_STOCK_BY_SKU, variables, page_size, "Stock lookup", lookup_query_cost(page_size)
        ):
            for edge in edges:
                node = edge.get("node") if isinstance(edge, dict) else None
                sku = node.get("sku") if isinstance(node, dict) else None
                # Search is fuzzier than equality; only keep exact matches
                if not isinstance(sku, str) or sku not in wanted:
                    continue
                # The first variant decides, even when it turns out malformed
                if sku in seen:
                    logger.warning(f"Several variants share SKU {sku} in {self.store_label}; using the first")
                    continue
                seen.add(sku)
                record = parse_stock_record(node)
                if record is not None:
                    records[sku] = record
        return records

    async def fetch_stock(self, sku: str) -> Optional[StockRecord]:
        """StockRecord for ``sku`` or None when the store has no such SKU."""
        records = await self._lookup([sku], self.SINGLE_LOOKUP_PAGE_SIZE)
        record = records.get(sku)
        if record is None:
            logger.info(f"No variant found for SKU {sku} in {self.store_label}")
        return record

    async def bulk_fetch_stock(self, skus: Sequence[str]) -> BulkStockResult:
        """
        Batched ``fetch_stock``. A batch that fails after retries leaves its SKUs in
        ``unresolved`` instead of dropping them.
        """
        result = BulkStockResult()
        unique_skus = list(dict.fromkeys(skus))
        total_batches = (len(unique_skus) + self.lookup_batch_size - 1) // self.lookup_batch_size

        for i in range(0, len(unique_skus), self.lookup_batch_size):
            batch = unique_skus[i:i + self.lookup_batch_size]
            batch_num = i // self.lookup_batch_size + 1
            logger.debug(f"Stock lookup batch {batch_num}/{total_batches} on {self.store_label} ({len(batch)} SKUs)")
            try:
                result.records.update(await self._lookup(batch, self.LOOKUP_PAGE_SIZE))
            except ShopifyServiceError as e:
                logger.error(
                    f"Stock lookup batch {batch_num}/{total_batches} on {self.store_label} failed; "
                    f"{len(batch)} SKUs marked unresolved: {e}"
                )
                result.unresolved.extend(batch)

        logger.info(
            f"Bulk stock lookup on {self.store_label}: {len(result.records)} found, "
            f"{len(unique_skus) - len(result.records) - len(result.unresolved)} missing, "
            f"{len(result.unresolved)} unresolved"
        )
        return result
