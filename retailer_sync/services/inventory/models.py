# retailer_sync/services/inventory/models.py
"""
Value types for one reconciliation pass.

Stock records are read fresh from the stores on every pass and never cached.
Decisions and outcomes are closed sets of frozen dataclasses tagged by
``DecisionKind`` / ``OutcomeKind``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from retailer_sync.core.enums import DecisionKind, OutcomeKind


@dataclass(frozen=True)
class LocationLevel:
    """Available quantity of one inventory item at one location. ``available`` is None when not reported."""
    location_id: str
    available: Optional[int]


@dataclass(frozen=True)
class StockRecord:
    sku: str
    variant_id: str
    inventory_item_id: str
    locations: Tuple[LocationLevel, ...] = ()

    def level_at(self, location_id: str) -> Optional[LocationLevel]:
        for level in self.locations:
            if level.location_id == location_id:
                return level
        return None


@dataclass(frozen=True)
class LocationPolicy:
    """The single target-store location a retailer allows inventory writes to."""
    authoritative_location_id: str


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NoActionNeeded:
    sku: str
    quantity: int
    kind: DecisionKind = field(default=DecisionKind.NO_ACTION_NEEDED, init=False)


@dataclass(frozen=True)
class UpdateRequired:
    sku: str
    inventory_item_id: str
    location_id: str
    from_quantity: int
    to_quantity: int
    kind: DecisionKind = field(default=DecisionKind.UPDATE_REQUIRED, init=False)

    @property
    def delta(self) -> int:
        return self.to_quantity - self.from_quantity


@dataclass(frozen=True)
class LocationMismatch:
    sku: str
    expected_location_id: str
    actual_location_id: Optional[str]
    kind: DecisionKind = field(default=DecisionKind.LOCATION_MISMATCH, init=False)


@dataclass(frozen=True)
class SourceMissing:
    sku: str
    kind: DecisionKind = field(default=DecisionKind.SOURCE_MISSING, init=False)


@dataclass(frozen=True)
class TargetMissing:
    sku: str
    source_quantity: Optional[int] = None
    kind: DecisionKind = field(default=DecisionKind.TARGET_MISSING, init=False)


@dataclass(frozen=True)
class SourceNoStock:
    sku: str
    kind: DecisionKind = field(default=DecisionKind.SOURCE_NO_STOCK, init=False)


ReconciliationDecision = Union[
    NoActionNeeded,
    UpdateRequired,
    LocationMismatch,
    SourceMissing,
    TargetMissing,
    SourceNoStock,
]


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SyncOutcome:
    """What happened to one SKU after the applier acted (or chose not to)."""
    sku: str
    kind: OutcomeKind
    from_quantity: Optional[int] = None
    to_quantity: Optional[int] = None
    expected_location_id: Optional[str] = None
    actual_location_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def updated(cls, decision: UpdateRequired) -> "SyncOutcome":
        return cls(decision.sku, OutcomeKind.UPDATED, decision.from_quantity, decision.to_quantity)

    @classmethod
    def would_update(cls, decision: UpdateRequired) -> "SyncOutcome":
        return cls(decision.sku, OutcomeKind.WOULD_UPDATE, decision.from_quantity, decision.to_quantity)

    @classmethod
    def failed(cls, sku: str, reason: str, decision: Optional[UpdateRequired] = None) -> "SyncOutcome":
        if decision is None:
            return cls(sku, OutcomeKind.FAILED, reason=reason)
        return cls(sku, OutcomeKind.FAILED, decision.from_quantity, decision.to_quantity, reason=reason)

    @classmethod
    def from_decision(cls, decision: ReconciliationDecision) -> "SyncOutcome":
        """Outcome for every decision that needs no write. UpdateRequired goes through the applier."""
        if isinstance(decision, NoActionNeeded):
            return cls(decision.sku, OutcomeKind.NO_UPDATE_NEEDED, decision.quantity, decision.quantity)
        if isinstance(decision, LocationMismatch):
            return cls(
                decision.sku,
                OutcomeKind.LOCATION_MISMATCH,
                expected_location_id=decision.expected_location_id,
                actual_location_id=decision.actual_location_id,
            )
        if isinstance(decision, SourceMissing):
            return cls(decision.sku, OutcomeKind.SOURCE_MISSING)
        if isinstance(decision, TargetMissing):
            return cls(decision.sku, OutcomeKind.TARGET_MISSING, to_quantity=decision.source_quantity)
        if isinstance(decision, SourceNoStock):
            return cls(decision.sku, OutcomeKind.SOURCE_NO_STOCK)
        raise TypeError(f"{type(decision).__name__} has no direct outcome")

    def to_dict(self) -> Dict[str, Any]:
        data = {"sku": self.sku, "status": self.kind.value}
        for name in ("from_quantity", "to_quantity", "expected_location_id", "actual_location_id", "reason"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


@dataclass
class SyncSummary:
    """Aggregated result of one reconciliation pass for one retailer."""
    total: int
    counts: Dict[OutcomeKind, int]
    updated: List[SyncOutcome]
    location_mismatches: List[SyncOutcome]
    failed: List[SyncOutcome]
    would_update: List[SyncOutcome] = field(default_factory=list)
    dry_run: bool = False
    duration_seconds: float = 0.0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[SyncOutcome], dry_run: bool = False, duration_seconds: float = 0.0) -> "SyncSummary":
        outcomes = list(outcomes)
        counts = {kind: 0 for kind in OutcomeKind}
        for outcome in outcomes:
            counts[outcome.kind] += 1
        return cls(
            total=len(outcomes),
            counts=counts,
            updated=[o for o in outcomes if o.kind == OutcomeKind.UPDATED],
            location_mismatches=[o for o in outcomes if o.kind == OutcomeKind.LOCATION_MISMATCH],
            failed=[o for o in outcomes if o.kind == OutcomeKind.FAILED],
            would_update=[o for o in outcomes if o.kind == OutcomeKind.WOULD_UPDATE],
            dry_run=dry_run,
            duration_seconds=duration_seconds,
        )

    def count(self, kind: OutcomeKind) -> int:
        return self.counts.get(kind, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "dry_run": self.dry_run,
            "duration_seconds": round(self.duration_seconds, 2),
            "counts": {kind.value: count for kind, count in self.counts.items()},
            "updated": [o.to_dict() for o in self.updated],
            "location_mismatches": [o.to_dict() for o in self.location_mismatches],
            "failed": [o.to_dict() for o in self.failed],
            "would_update": [o.to_dict() for o in self.would_update],
        }

    def print_summary(self, retailer_name: Optional[str] = None):
        """Prints a formatted report to the console."""
        print("\n" + "="*50)
        print("INVENTORY SYNC SUMMARY" + (f" - {retailer_name}" if retailer_name else ""))
        print("="*50)
        print(f"Mode         : {'Dry Run' if self.dry_run else 'Live Run'}")
        print(f"Total SKUs   : {self.total}")
        print(f"Duration     : {self.duration_seconds:.2f}s")

        print("\n## Breakdown ##")
        for kind in OutcomeKind:
            if kind == OutcomeKind.WOULD_UPDATE and not self.dry_run:
                continue
            print(f"- {kind.label:<18}: {self.count(kind)}")

        if self.updated:
            print("\n## Updated ##")
            for o in self.updated:
                print(f"- {o.sku}: {o.from_quantity} -> {o.to_quantity}")
        if self.would_update:
            print("\n## Would Update ##")
            for o in self.would_update:
                print(f"- {o.sku}: {o.from_quantity} -> {o.to_quantity}")
        if self.location_mismatches:
            print("\n## Location Mismatches ##")
            for o in self.location_mismatches:
                print(f"- {o.sku}: expected {o.expected_location_id}, found {o.actual_location_id or 'no locations'}")
        if self.failed:
            print("\n## Failed ##")
            for o in self.failed:
                print(f"- {o.sku}: {o.reason}")

        print("\n--- End of Report ---")
