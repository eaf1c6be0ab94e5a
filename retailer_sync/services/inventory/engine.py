# retailer_sync/services/inventory/engine.py
"""
Reconciliation decisions. Pure functions, no I/O.

Source and target stores have unrelated location id spaces, so the target
location is always the one the retailer configured, never one inferred from the
source. Quantities are compared with strict equality.
"""

from typing import Optional

from retailer_sync.services.inventory.models import (
    LocationLevel,
    LocationMismatch,
    LocationPolicy,
    NoActionNeeded,
    ReconciliationDecision,
    SourceMissing,
    SourceNoStock,
    StockRecord,
    TargetMissing,
    UpdateRequired,
)


def first_available_level(record: StockRecord) -> Optional[LocationLevel]:
    """First location that reports an "available" quantity at all."""
    for level in record.locations:
        if level.available is not None:
            return level
    return None


def decide(
    sku: str,
    source: Optional[StockRecord],
    target: Optional[StockRecord],
    policy: LocationPolicy,
) -> ReconciliationDecision:
    if source is None:
        return SourceMissing(sku)

    source_level = first_available_level(source)
    if source_level is None:
        return SourceNoStock(sku)
    source_qty = source_level.available

    if target is None:
        return TargetMissing(sku, source_quantity=source_qty)

    expected_location = policy.authoritative_location_id
    target_level = target.level_at(expected_location)
    if target_level is None:
        # A record with no locations at all is reported the same way
        actual = target.locations[0].location_id if target.locations else None
        return LocationMismatch(sku, expected_location_id=expected_location, actual_location_id=actual)

    target_qty = target_level.available if target_level.available is not None else 0

    if source_qty == target_qty:
        return NoActionNeeded(sku, quantity=source_qty)

    return UpdateRequired(
        sku=sku,
        inventory_item_id=target.inventory_item_id,
        location_id=expected_location,
        from_quantity=target_qty,
        to_quantity=source_qty,
    )
