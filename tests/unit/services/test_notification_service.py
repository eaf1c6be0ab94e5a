import smtplib

import pytest

from retailer_sync.core.enums import OutcomeKind
from retailer_sync.services.inventory.models import SyncOutcome, SyncSummary
from retailer_sync.services.inventory_sync_service import RetailerSyncResult
from retailer_sync.services.notification_service import MAX_DETAIL_LINES, EmailNotificationService


def _result(outcomes, name="Nationwide Plants"):
    return RetailerSyncResult("nationwide-plants", name, summary=SyncSummary.from_outcomes(outcomes))


@pytest.mark.asyncio
async def test_inventory_alert_subject_and_body(settings, mocker):
    send = mocker.patch.object(EmailNotificationService, "_send_sync")
    results = [
        _result([
            SyncOutcome("X", OutcomeKind.UPDATED, 5, 12),
            SyncOutcome("Y", OutcomeKind.LOCATION_MISMATCH, expected_location_id="L1", actual_location_id="L2"),
        ]),
        RetailerSyncResult("garden-gems", "Garden Gems", error="ConfigurationError: Missing API token"),
    ]

    sent = await EmailNotificationService(settings).send_inventory_alert(results)

    assert sent is True
    message = send.call_args.args[0]
    assert message["Subject"] == "Inventory: 1 SKUs updated (1 retailer(s) failed)"
    assert message["To"] == "ops@example.com"
    body = message.get_body(preferencelist=("plain",)).get_content()
    assert "X: 5 -> 12" in body
    assert "Y: expected L1, found L2" in body
    assert "FAILED: ConfigurationError: Missing API token" in body


@pytest.mark.asyncio
async def test_inventory_alert_skipped_without_activity(settings, mocker):
    send = mocker.patch.object(EmailNotificationService, "_send_sync")

    sent = await EmailNotificationService(settings).send_inventory_alert([_result([])])

    assert sent is False
    send.assert_not_called()


@pytest.mark.asyncio
async def test_inventory_alert_truncates_long_lists(settings, mocker):
    send = mocker.patch.object(EmailNotificationService, "_send_sync")
    outcomes = [SyncOutcome(f"SKU-{i}", OutcomeKind.UPDATED, 0, 1) for i in range(MAX_DETAIL_LINES + 5)]

    await EmailNotificationService(settings).send_inventory_alert([_result(outcomes)])

    body = send.call_args.args[0].get_body(preferencelist=("plain",)).get_content()
    assert "... and 5 more" in body


@pytest.mark.asyncio
async def test_incomplete_smtp_settings_skip_email(settings, mocker):
    send = mocker.patch.object(EmailNotificationService, "_send_sync")
    service = EmailNotificationService(settings.model_copy(update={"SMTP_HOST": ""}))

    sent = await service.send_inventory_alert([_result([SyncOutcome("X", OutcomeKind.UPDATED, 1, 2)])])

    assert sent is False
    send.assert_not_called()


@pytest.mark.asyncio
async def test_smtp_failure_is_reported_not_raised(settings, mocker):
    mocker.patch.object(EmailNotificationService, "_send_sync", side_effect=smtplib.SMTPException("auth failed"))

    sent = await EmailNotificationService(settings).send_error_notification(
        RuntimeError("boom"), {"operation": "inventory", "retailer": "Nationwide Plants"}
    )

    assert sent is False


@pytest.mark.asyncio
async def test_error_notification(settings, mocker):
    send = mocker.patch.object(EmailNotificationService, "_send_sync")

    sent = await EmailNotificationService(settings).send_error_notification(
        RuntimeError("catalog listing failed"),
        {"operation": "inventory", "retailer": "Nationwide Plants"},
        recipients=["oncall@example.com"],
    )

    assert sent is True
    message = send.call_args.args[0]
    assert message["Subject"] == "Error: inventory failed for Nationwide Plants"
    assert message["To"] == "oncall@example.com"
    assert "catalog listing failed" in message.get_content()
