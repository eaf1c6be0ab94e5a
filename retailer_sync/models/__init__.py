# retailer_sync/models/__init__.py
from .activity_log import ActivityLog
