import pytest

from retailer_sync.core.enums import DecisionKind, OutcomeKind
from retailer_sync.services.inventory.engine import decide, first_available_level
from retailer_sync.services.inventory.models import (
    LocationLevel,
    LocationMismatch,
    LocationPolicy,
    NoActionNeeded,
    SourceMissing,
    SourceNoStock,
    StockRecord,
    SyncOutcome,
    TargetMissing,
    UpdateRequired,
)

L_SOURCE = "gid://shopify/Location/1"
L_TARGET = "gid://shopify/Location/500"
L_OTHER = "gid://shopify/Location/777"

POLICY = LocationPolicy(authoritative_location_id=L_TARGET)


def _record(sku, *levels, item="gid://shopify/InventoryItem/1"):
    return StockRecord(
        sku=sku,
        variant_id="gid://shopify/ProductVariant/1",
        inventory_item_id=item,
        locations=tuple(LocationLevel(location_id=loc, available=qty) for loc, qty in levels),
    )


def test_source_above_target_requires_update():
    source = _record("X", (L_SOURCE, 12))
    target = _record("X", (L_TARGET, 5), item="gid://shopify/InventoryItem/42")

    decision = decide("X", source, target, POLICY)

    assert decision == UpdateRequired(
        sku="X",
        inventory_item_id="gid://shopify/InventoryItem/42",
        location_id=L_TARGET,
        from_quantity=5,
        to_quantity=12,
    )
    assert decision.kind == DecisionKind.UPDATE_REQUIRED
    assert decision.delta == 7


def test_target_only_at_other_location_is_mismatch():
    source = _record("Y", (L_SOURCE, 3))
    target = _record("Y", (L_OTHER, 3))

    decision = decide("Y", source, target, POLICY)

    assert decision == LocationMismatch("Y", expected_location_id=L_TARGET, actual_location_id=L_OTHER)


def test_missing_source_record():
    target = _record("Z", (L_TARGET, 4))
    assert decide("Z", None, target, POLICY) == SourceMissing("Z")


def test_equal_quantities_need_no_action():
    decision = decide("W", _record("W", (L_SOURCE, 7)), _record("W", (L_TARGET, 7)), POLICY)
    assert decision == NoActionNeeded("W", quantity=7)


def test_missing_target_record_carries_source_quantity():
    decision = decide("T", _record("T", (L_SOURCE, 9)), None, POLICY)
    assert decision == TargetMissing("T", source_quantity=9)


@pytest.mark.parametrize("source", [
    _record("S"),
    _record("S", (L_SOURCE, None)),
    _record("S", (L_SOURCE, None), ("gid://shopify/Location/2", None)),
])
def test_source_without_available_quantity(source):
    decision = decide("S", source, _record("S", (L_TARGET, 1)), POLICY)
    assert decision == SourceNoStock("S")


def test_source_quantity_is_first_location_that_reports_available():
    source = _record("Q", (L_SOURCE, None), ("gid://shopify/Location/2", 4), ("gid://shopify/Location/3", 8))
    assert first_available_level(source).available == 4
    assert decide("Q", source, _record("Q", (L_TARGET, 4)), POLICY) == NoActionNeeded("Q", quantity=4)


def test_zero_source_stock_is_still_a_quantity():
    decision = decide("Q", _record("Q", (L_SOURCE, 0)), _record("Q", (L_TARGET, 2)), POLICY)
    assert isinstance(decision, UpdateRequired)
    assert (decision.from_quantity, decision.to_quantity) == (2, 0)


def test_target_without_available_counts_as_zero():
    decision = decide("Q", _record("Q", (L_SOURCE, 3)), _record("Q", (L_TARGET, None)), POLICY)
    assert isinstance(decision, UpdateRequired)
    assert decision.from_quantity == 0


def test_target_with_no_locations_is_mismatch_without_actual():
    decision = decide("N", _record("N", (L_SOURCE, 3)), _record("N"), POLICY)
    assert decision == LocationMismatch("N", expected_location_id=L_TARGET, actual_location_id=None)


def test_write_always_goes_to_configured_location():
    """The source location id never leaks into the target write"""
    target = _record("M", (L_OTHER, 1), (L_TARGET, 1))
    decision = decide("M", _record("M", (L_TARGET, 6)), target, POLICY)
    assert decision.location_id == L_TARGET

    decision = decide("M", _record("M", (L_SOURCE, 6)), target, POLICY)
    assert decision.location_id == L_TARGET


def test_deciding_on_the_corrected_state_needs_no_action():
    source = _record("X", (L_SOURCE, 12))
    first = decide("X", source, _record("X", (L_TARGET, 5)), POLICY)

    corrected = _record("X", (L_TARGET, first.to_quantity))
    assert decide("X", source, corrected, POLICY) == NoActionNeeded("X", quantity=12)


"""
Outcomes
"""

def test_outcome_from_decision():
    assert SyncOutcome.from_decision(NoActionNeeded("A", 3)).kind == OutcomeKind.NO_UPDATE_NEEDED
    assert SyncOutcome.from_decision(SourceMissing("B")).kind == OutcomeKind.SOURCE_MISSING
    assert SyncOutcome.from_decision(SourceNoStock("C")).kind == OutcomeKind.SOURCE_NO_STOCK

    missing = SyncOutcome.from_decision(TargetMissing("D", source_quantity=4))
    assert (missing.kind, missing.to_quantity) == (OutcomeKind.TARGET_MISSING, 4)

    mismatch = SyncOutcome.from_decision(LocationMismatch("E", L_TARGET, L_OTHER))
    assert mismatch.kind == OutcomeKind.LOCATION_MISMATCH
    assert mismatch.to_dict() == {
        "sku": "E",
        "status": "location_mismatch",
        "expected_location_id": L_TARGET,
        "actual_location_id": L_OTHER,
    }


def test_update_required_has_no_direct_outcome():
    with pytest.raises(TypeError):
        SyncOutcome.from_decision(UpdateRequired("A", "item", L_TARGET, 1, 2))
