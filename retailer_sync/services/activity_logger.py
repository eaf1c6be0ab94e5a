# retailer_sync/services/activity_logger.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from retailer_sync.core.enums import SyncStatus
from retailer_sync.models.activity_log import ActivityLog
from retailer_sync.services.inventory.models import SyncSummary

logger = logging.getLogger(__name__)


class ActivityLogger:
    """
    Records sync activity in the activity_log table.

    Failures to write are logged and swallowed so that a database outage never
    interrupts a sync.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_activity(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        status: str,
        platform: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityLog]:
        """
        Log an activity in the system.

        Args:
            action: The action performed (e.g. inventory_sync)
            entity_type: The type of entity affected (retailer)
            entity_id: The ID of the affected entity
            status: SyncStatus value for the activity
            platform: Optional platform name
            details: Optional additional details as a dictionary

        Returns:
            The created ActivityLog instance, or None if it could not be written
        """
        try:
            log_entry = ActivityLog(
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id),
                platform=platform,
                status=status,
                details=details,
                created_at=datetime.now(timezone.utc),
            )

            self.db.add(log_entry)
            await self.db.flush()

            logger.debug(f"Activity logged: {action} {entity_type} {entity_id} ({status})")
            return log_entry

        except SQLAlchemyError as e:
            logger.error(f"Error logging activity: {str(e)}")
            return None

    async def log_inventory_sync(
        self,
        retailer_id: str,
        retailer_name: str,
        summary: Optional[SyncSummary] = None,
        error: Optional[str] = None,
    ) -> Optional[ActivityLog]:
        """One row per retailer pass: the summary when it completed, the error when it did not."""
        if summary is not None:
            details: Dict[str, Any] = {"retailer": retailer_name, **summary.to_dict()}
            status = SyncStatus.SUCCESS.value
        else:
            details = {"retailer": retailer_name, "error": error}
            status = SyncStatus.ERROR.value

        return await self.log_activity(
            action="inventory_sync",
            entity_type="retailer",
            entity_id=retailer_id,
            status=status,
            platform="shopify",
            details=details,
        )
