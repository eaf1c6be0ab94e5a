from .accessor import BulkStockResult, CatalogAccessor
from .applier import CorrectionApplier
from .engine import decide
from .models import (
    LocationLevel,
    LocationMismatch,
    LocationPolicy,
    NoActionNeeded,
    ReconciliationDecision,
    SourceMissing,
    SourceNoStock,
    StockRecord,
    SyncOutcome,
    SyncSummary,
    TargetMissing,
    UpdateRequired,
)
from .orchestrator import InventorySyncOrchestrator
