"""Contacts API - CRUD, bulk operations and CSV export for contact records."""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .base import RecordService, describe_error, split_results
from .fields import EntitySchema, FieldSpec, to_int, utc_now_iso
from .notifications import Notifier

logger = logging.getLogger(__name__)

_EDITABLE = (
    FieldSpec("firstName_c"),
    FieldSpec("lastName_c"),
    FieldSpec("email_c"),
    FieldSpec("phone_c"),
    FieldSpec("title_c"),
    FieldSpec("companyId_c", coerce=to_int),
    FieldSpec("notes_c", default=""),
)

CONTACT_SCHEMA = EntitySchema(
    table="contact_c",
    label="Contact",
    plural="contacts",
    fields=(
        "firstName_c",
        "lastName_c",
        "email_c",
        "phone_c",
        "title_c",
        "notes_c",
        "createdAt_c",
        "updatedAt_c",
    ),
    references=("companyId_c",),
    create_fields=_EDITABLE
    + (FieldSpec("createdAt_c", stamp=True), FieldSpec("updatedAt_c", stamp=True)),
    update_fields=_EDITABLE + (FieldSpec("updatedAt_c", stamp=True),),
)

CSV_HEADERS = (
    "ID",
    "First Name",
    "Last Name",
    "Email",
    "Phone",
    "Title",
    "Company",
    "Created At",
    "Updated At",
)

# Download sink: receives (filename, csv_text).
DownloadSink = Callable[[str, str], Any]


def _company_name(contact: dict[str, Any]) -> Any:
    company = contact.get("companyId_c")
    if isinstance(company, dict):
        return company.get("Name")
    return None


def _csv_row(contact: dict[str, Any]) -> dict[str, Any]:
    record_id = to_int(contact.get("Id"))
    values = (
        contact.get("firstName_c"),
        contact.get("lastName_c"),
        contact.get("email_c"),
        contact.get("phone_c"),
        contact.get("title_c"),
        _company_name(contact),
        contact.get("createdAt_c"),
        contact.get("updatedAt_c"),
    )
    row: dict[str, Any] = {"ID": "" if record_id is None else record_id}
    row.update({header: str(value or "") for header, value in zip(CSV_HEADERS[1:], values)})
    return row


def contacts_to_csv(contacts: list[dict[str, Any]]) -> str:
    """Render contacts as CSV text; the Id column is left unquoted."""
    output = io.StringIO()
    csv.writer(output, lineterminator="\n").writerow(CSV_HEADERS)
    writer = csv.DictWriter(
        output, fieldnames=CSV_HEADERS, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n"
    )
    for contact in contacts:
        writer.writerow(_csv_row(contact))
    return output.getvalue().removesuffix("\n")


def export_filename(today: datetime | None = None) -> str:
    day = (today or datetime.now(timezone.utc)).date().isoformat()
    return f"contacts_export_{day}.csv"


def save_to_directory(directory: str | Path) -> DownloadSink:
    """Download sink that writes the export into ``directory``."""

    def _save(filename: str, content: str) -> Path:
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / filename
        path.write_text(content, encoding="utf-8")
        return path

    return _save


class ContactsService(RecordService):
    """Contacts table.

    Usage:
        async with RecordClient.from_settings() as crm:
            contacts = await crm.contacts.get_all()

            result = await crm.contacts.bulk_update([1, 2, 3], {"title_c": "CTO"})
            print(result["successCount"], result["errorCount"])

            await crm.contacts.bulk_export(contacts)
    """

    schema = CONTACT_SCHEMA

    def __init__(
        self,
        client,
        notifier: Notifier | None = None,
        download: DownloadSink | None = None,
    ):
        super().__init__(client, notifier)
        self._download = download

    def _save_export(self, filename: str, content: str) -> None:
        if self._download is not None:
            self._download(filename, content)
            return
        from ..config import settings

        save_to_directory(settings.exports_dir)(filename, content)

    # =========================================================================
    # Bulk Operations
    # =========================================================================

    async def bulk_update(self, contact_ids: list[Any], update_data: dict[str, Any]) -> dict[str, Any]:
        """Apply the same partial patch to every contact in one batch.

        Returns:
            {"updated": [...], "errors": [{"id", "error"}, ...],
             "successCount": N, "errorCount": M}
        """
        default = {"updated": [], "errors": [], "successCount": 0, "errorCount": len(contact_ids)}
        records = [
            {"Id": to_int(cid), **update_data, "updatedAt_c": utc_now_iso()}
            for cid in contact_ids
        ]
        try:
            response = await self._client.update_record(self.table, {"records": records})

            if not response.get("success"):
                logger.error(response.get("message"))
                self._notify(response.get("message"))
                return default

            results = response.get("results")
            if not isinstance(results, list):
                logger.error("Bulk update of contacts returned no per-record results")
                return default

            successful, failed = split_results(results)
            if failed:
                self._report_failed(f"Failed to update {len(failed)} contacts", failed)

            return {
                "updated": [r.get("data") for r in successful],
                "errors": [{"id": r.get("Id"), "error": r.get("message")} for r in failed],
                "successCount": len(successful),
                "errorCount": len(failed),
            }
        except Exception as exc:
            logger.error("Error bulk updating contacts: %s", describe_error(exc))
            return default

    async def bulk_delete(self, contact_ids: list[Any]) -> dict[str, Any]:
        """Delete many contacts in one batch.

        Returns:
            {"deleted": [...], "errors": [...], "successCount": N, "errorCount": M}
        """
        default = {"deleted": [], "errors": [], "successCount": 0, "errorCount": len(contact_ids)}
        try:
            response = await self._client.delete_record(
                self.table, {"RecordIds": [to_int(cid) for cid in contact_ids]}
            )

            if not response.get("success"):
                logger.error(response.get("message"))
                self._notify(response.get("message"))
                return default

            results = response.get("results")
            if not isinstance(results, list):
                logger.error("Bulk delete of contacts returned no per-record results")
                return default

            successful, failed = split_results(results)
            if failed:
                self._report_failed(f"Failed to delete {len(failed)} contacts", failed)

            return {
                "deleted": successful,
                "errors": [{"id": r.get("Id"), "error": r.get("message")} for r in failed],
                "successCount": len(successful),
                "errorCount": len(failed),
            }
        except Exception as exc:
            logger.error("Error bulk deleting contacts: %s", describe_error(exc))
            return default

    async def bulk_export(
        self, contacts: list[dict[str, Any]], *, download: DownloadSink | None = None
    ) -> dict[str, Any]:
        """Export already-fetched contacts as CSV and hand the file to the download sink."""
        content = contacts_to_csv(contacts)
        filename = export_filename()
        if download is not None:
            download(filename, content)
        else:
            self._save_export(filename, content)
        return {"success": True, "filename": filename, "count": len(contacts)}
