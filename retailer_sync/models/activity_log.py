# retailer_sync/models/activity_log.py
from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from retailer_sync.database import Base


class ActivityLog(Base):
    """
    Records each retailer sync pass for auditing and monitoring.

    ``details`` holds the serialised SyncSummary, or the error for a pass that
    failed before producing one.
    """
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True)
    action = Column(String(50), nullable=False, index=True)  # 'inventory_sync'
    entity_type = Column(String(50), nullable=False, index=True)  # 'retailer'
    entity_id = Column(String(100), nullable=False, index=True)  # retailer id
    platform = Column(String(50), nullable=True, index=True)
    status = Column(String(20), nullable=False, index=True)  # SyncStatus value

    details = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<ActivityLog {self.action} {self.entity_type} {self.entity_id} {self.status}>"
