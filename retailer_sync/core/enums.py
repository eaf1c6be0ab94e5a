"""
Shared enums and constants used across the application.
"""

from enum import Enum


class DecisionKind(str, Enum):
    """What the reconciliation engine decided for one SKU."""
    NO_ACTION_NEEDED = "no_action_needed"
    UPDATE_REQUIRED = "update_required"
    LOCATION_MISMATCH = "location_mismatch"
    SOURCE_MISSING = "source_missing"
    TARGET_MISSING = "target_missing"
    SOURCE_NO_STOCK = "source_no_stock"


class OutcomeKind(str, Enum):
    """Per-SKU result of a reconciliation pass. Each SKU lands in exactly one."""
    UPDATED = "updated"
    NO_UPDATE_NEEDED = "no_update_needed"
    LOCATION_MISMATCH = "location_mismatch"
    FAILED = "failed"
    SOURCE_MISSING = "source_missing"
    TARGET_MISSING = "target_missing"
    SOURCE_NO_STOCK = "source_no_stock"
    WOULD_UPDATE = "would_update"   # dry runs only

    @property
    def label(self):
        return self.value.replace('_', ' ').capitalize()


class SyncStatus(str, Enum):
    """Status of a whole retailer pass, as recorded in the activity log."""
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"
