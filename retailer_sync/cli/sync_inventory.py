# retailer_sync/cli/sync_inventory.py
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional

import click
from sqlalchemy.exc import SQLAlchemyError

from retailer_sync import database
from retailer_sync.core.config import Settings, get_settings
from retailer_sync.core.exceptions import ConfigurationError, RetailerNotFoundError
from retailer_sync.core.logging_config import configure_logging
from retailer_sync.services.inventory_sync_service import InventoryRunReport, InventorySyncService
from retailer_sync.services.notification_service import EmailNotificationService

logger = logging.getLogger(__name__)


@click.command()
@click.option('--retailer-id', envvar='RETAILER_ID', default=None,
              help='Only sync this retailer (default: every retailer with syncInventory enabled)')
@click.option('--dry-run', is_flag=True, help='Compute corrections without writing them')
@click.option('--no-email', is_flag=True, help='Do not send notification emails')
@click.option('--log-level', default=None, help='Override LOG_LEVEL (DEBUG, INFO, ...)')
def sync_inventory(retailer_id, dry_run, no_email, log_level):
    """Reconcile retailer inventory against the LGL store"""
    configure_logging(log_level)
    settings = get_settings()

    start_time = datetime.now()
    logger.info(f"Starting inventory sync at {start_time}")

    try:
        report = asyncio.run(run_sync(settings, retailer_id, dry_run=dry_run, send_email=not no_email))
    except RetailerNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)
    except ConfigurationError as e:
        logger.error(f"Inventory sync could not start: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    report.print_summary()
    logger.info(f"Completed inventory sync in {datetime.now() - start_time}")

    if report.has_failures:
        names = ", ".join(r.retailer_name for r in report.failed_retailers)
        click.echo(f"Inventory sync failed for: {names}", err=True)
        sys.exit(1)


async def run_sync(
    settings: Settings,
    retailer_id: Optional[str] = None,
    dry_run: bool = False,
    send_email: bool = True,
) -> InventoryRunReport:
    """Wire up the sinks and run the sync."""
    notifier = EmailNotificationService(settings) if send_email else None

    session_factory = None
    if database.is_configured():
        try:
            await database.create_tables()
            session_factory = database.get_session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Activity log unavailable, continuing without it: {e}")

    service = InventorySyncService(settings, notifier=notifier, session_factory=session_factory)
    try:
        return await service.run(retailer_id=retailer_id, dry_run=dry_run)
    finally:
        if database.is_configured():
            await database.dispose_engine()


if __name__ == '__main__':
    sync_inventory()
