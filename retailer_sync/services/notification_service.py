"""Email notification helpers for inventory sync runs."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence

from retailer_sync.core.config import Settings
from retailer_sync.core.enums import OutcomeKind

if TYPE_CHECKING:
    from retailer_sync.services.inventory_sync_service import RetailerSyncResult

logger = logging.getLogger(__name__)

# Detail lists can run to thousands of SKUs; the email only shows the head of each
MAX_DETAIL_LINES = 50


class EmailNotificationService:
    """Lightweight SMTP helper for sync notifications."""

    def __init__(self, settings: Settings):
        self._settings = settings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def send_inventory_alert(
        self,
        results: Sequence["RetailerSyncResult"],
        recipients: Optional[Sequence[str]] = None,
    ) -> bool:
        """Send one email covering every retailer pass of a run.

        Args:
            results: One entry per retailer, each with a summary or an error.
            recipients: Override the default notification list.

        Skipped (returns False) when no retailer reconciled any SKU and none failed.
        """
        total_skus = sum(r.summary.total for r in results if r.summary)
        failed_passes = [r for r in results if r.error]
        if total_skus == 0 and not failed_passes:
            logger.info("No inventory activity to report; skipping email")
            return False

        if not self._ready():
            logger.warning("SMTP configuration incomplete; inventory alert skipped")
            return False

        to_addresses = self._resolve_recipients(recipients)
        if not to_addresses:
            logger.warning("No recipients configured for inventory alert; skipping email")
            return False

        updated = sum(r.summary.count(OutcomeKind.UPDATED) for r in results if r.summary)
        subject = f"Inventory: {updated} SKUs updated"
        if failed_passes:
            subject += f" ({len(failed_passes)} retailer(s) failed)"

        lines: List[str] = [
            "Inventory Sync Alert",
            "",
            f"Time: {datetime.now(timezone.utc).isoformat()}",
            f"Retailers: {len(results)}",
            f"Total SKUs: {total_skus}",
        ]
        for result in results:
            lines.append("")
            lines.extend(self._retailer_lines(result))

        lines.append("\nSent automatically by Retailer Sync")
        body_text = "\n".join(lines)
        body_html = "".join(f"<p>{html.escape(line)}</p>" if line else "<br/>" for line in lines)

        message = self._build_message(subject, to_addresses, body_text, body_html)
        return await self._dispatch(message, "inventory alert")

    async def send_error_notification(
        self,
        error: BaseException,
        context: Optional[Dict[str, Any]] = None,
        recipients: Optional[Sequence[str]] = None,
    ) -> bool:
        """Report a fatal failure (a whole run, or a retailer pass that could not start)."""
        if not self._ready():
            logger.warning("SMTP configuration incomplete; error notification skipped")
            return False

        to_addresses = self._resolve_recipients(recipients)
        if not to_addresses:
            logger.warning("No recipients configured for error notification; skipping email")
            return False

        context = context or {}
        subject = f"Error: {context.get('operation', 'sync')} failed"
        if context.get("retailer"):
            subject += f" for {context['retailer']}"

        lines = [
            f"Time: {datetime.now(timezone.utc).isoformat()}",
            f"Error: {type(error).__name__}: {error}",
        ]
        lines.extend(f"{key}: {value}" for key, value in context.items())
        lines.append("\nSent automatically by Retailer Sync")

        message = self._build_message(subject, to_addresses, "\n".join(lines))
        return await self._dispatch(message, "error notification")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @staticmethod
    def _retailer_lines(result: "RetailerSyncResult") -> List[str]:
        lines = [f"== {result.retailer_name} =="]
        if result.error:
            lines.append(f"FAILED: {result.error}")
            return lines

        summary = result.summary
        lines.append(f"Total SKUs: {summary.total}")
        for kind in OutcomeKind:
            count = summary.count(kind)
            if count:
                lines.append(f"{kind.label}: {count}")

        sections = (
            ("Updated", summary.updated, lambda o: f"{o.sku}: {o.from_quantity} -> {o.to_quantity}"),
            ("Would update", summary.would_update, lambda o: f"{o.sku}: {o.from_quantity} -> {o.to_quantity}"),
            ("Location mismatches", summary.location_mismatches,
             lambda o: f"{o.sku}: expected {o.expected_location_id}, found {o.actual_location_id or 'no locations'}"),
            ("Failures", summary.failed, lambda o: f"{o.sku}: {o.reason}"),
        )
        for title, outcomes, fmt in sections:
            if not outcomes:
                continue
            lines.append(f"{title}:")
            lines.extend(f"  - {fmt(o)}" for o in outcomes[:MAX_DETAIL_LINES])
            if len(outcomes) > MAX_DETAIL_LINES:
                lines.append(f"  ... and {len(outcomes) - MAX_DETAIL_LINES} more")
        return lines

    def _ready(self) -> bool:
        settings = self._settings
        return bool(settings.SMTP_HOST and settings.SMTP_USERNAME and settings.SMTP_PASSWORD)

    def _resolve_recipients(self, override: Optional[Sequence[str]]) -> List[str]:
        recipients: Iterable[str] = override if override else self._settings.NOTIFICATION_EMAILS
        return [email.strip() for email in recipients if email]

    def _build_message(
        self,
        subject: str,
        to_addresses: Sequence[str],
        body_text: str,
        body_html: Optional[str] = None,
    ) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self._formatted_from_address
        message["To"] = ", ".join(sorted(set(to_addresses)))
        message.set_content(body_text)
        if body_html:
            message.add_alternative(body_html, subtype="html")
        return message

    @property
    def _formatted_from_address(self) -> str:
        from_email = self._settings.SMTP_FROM_EMAIL or self._settings.SMTP_USERNAME
        from_name = self._settings.SMTP_FROM_NAME or "Retailer Sync"
        return formataddr((from_name, from_email))

    async def _dispatch(self, message: EmailMessage, description: str) -> bool:
        try:
            await asyncio.to_thread(self._send_sync, message)
            logger.info("Sent %s email to %s", description, message["To"])
            return True
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send %s email: %s", description, exc, exc_info=True)
            return False

    def _send_sync(self, message: EmailMessage) -> None:
        settings = self._settings
        host = settings.SMTP_HOST
        port = settings.SMTP_PORT or (465 if settings.SMTP_USE_SSL else 587)
        timeout = settings.SMTP_TIMEOUT

        if settings.SMTP_USE_SSL:
            smtp = smtplib.SMTP_SSL(host=host, port=port, timeout=timeout)
        else:
            smtp = smtplib.SMTP(host=host, port=port, timeout=timeout)
        try:
            if settings.SMTP_USE_TLS and not settings.SMTP_USE_SSL:
                smtp.starttls()

            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            smtp.send_message(message)
        finally:
            try:
                smtp.quit()
            except smtplib.SMTPException:
                smtp.close()
