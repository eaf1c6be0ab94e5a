import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.exc import OperationalError

from retailer_sync.core.enums import OutcomeKind
from retailer_sync.models.activity_log import ActivityLog
from retailer_sync.services.activity_logger import ActivityLogger
from retailer_sync.services.inventory.models import SyncOutcome, SyncSummary


def _session():
    session = MagicMock()
    session.flush = AsyncMock()
    return session


@pytest.mark.asyncio
async def test_logs_completed_pass_with_summary():
    session = _session()
    summary = SyncSummary.from_outcomes([
        SyncOutcome("X", OutcomeKind.UPDATED, 5, 12),
        SyncOutcome("Y", OutcomeKind.NO_UPDATE_NEEDED, 3, 3),
    ])

    entry = await ActivityLogger(session).log_inventory_sync("nationwide-plants", "Nationwide Plants", summary=summary)

    session.add.assert_called_once_with(entry)
    session.flush.assert_awaited_once()
    assert isinstance(entry, ActivityLog)
    assert (entry.action, entry.entity_type, entry.entity_id) == ("inventory_sync", "retailer", "nationwide-plants")
    assert entry.status == "success"
    assert entry.details["total"] == 2
    assert entry.details["counts"]["updated"] == 1
    assert entry.details["updated"] == [{"sku": "X", "status": "updated", "from_quantity": 5, "to_quantity": 12}]


@pytest.mark.asyncio
async def test_logs_failed_pass_with_error():
    session = _session()

    entry = await ActivityLogger(session).log_inventory_sync(
        "nationwide-plants", "Nationwide Plants", error="ShopifyTransportError: HTTP 503"
    )

    assert entry.status == "error"
    assert entry.details == {"retailer": "Nationwide Plants", "error": "ShopifyTransportError: HTTP 503"}


@pytest.mark.asyncio
async def test_database_errors_are_swallowed():
    session = _session()
    session.flush.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))

    result = await ActivityLogger(session).log_activity("inventory_sync", "retailer", "x", "success")

    assert result is None
