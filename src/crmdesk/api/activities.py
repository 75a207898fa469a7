"""Activities API - calls, emails, meetings, tasks and notes logged against contacts and deals."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from .base import RecordService, describe_error
from .fields import EntitySchema, FieldSpec, parse_timestamp, to_int

logger = logging.getLogger(__name__)

ACTIVITY_TYPES: tuple[str, ...] = ("Call", "Email", "Meeting", "Task", "Note")

_REFERENCES = (
    FieldSpec("contactId_c", coerce=to_int, optional=True),
    FieldSpec("dealId_c", coerce=to_int, optional=True),
)

ACTIVITY_SCHEMA = EntitySchema(
    table="activity_c",
    label="Activity",
    plural="activities",
    fields=(
        "type_c",
        "subject_c",
        "description_c",
        "dueDate_c",
        "completed_c",
        "createdAt_c",
    ),
    references=("contactId_c", "dealId_c"),
    create_fields=(
        FieldSpec("type_c"),
        FieldSpec("subject_c"),
        FieldSpec("description_c"),
        FieldSpec("dueDate_c"),
        FieldSpec("completed_c", default=False),
        FieldSpec("createdAt_c", stamp=True),
    )
    + _REFERENCES,
    update_fields=(
        FieldSpec("type_c"),
        FieldSpec("subject_c"),
        FieldSpec("description_c"),
        FieldSpec("dueDate_c"),
        FieldSpec("completed_c"),
    )
    + _REFERENCES,
)


def get_activity_types() -> list[str]:
    return list(ACTIVITY_TYPES)


def _open_with_due(activities: list[dict[str, Any]]) -> list[tuple[datetime, dict[str, Any]]]:
    """(due, activity) pairs for activities not completed and with a readable due date."""
    pairs = []
    for activity in activities:
        if activity.get("completed_c"):
            continue
        due = parse_timestamp(activity.get("dueDate_c"))
        if due is not None:
            pairs.append((due, activity))
    return pairs


class ActivitiesService(RecordService):
    """Activities table.

    Usage:
        async with RecordClient.from_settings() as crm:
            upcoming = await crm.activities.get_upcoming(limit=5)
            overdue = await crm.activities.get_overdue()
            await crm.activities.mark_completed(42)
    """

    schema = ACTIVITY_SCHEMA

    @staticmethod
    def get_activity_types() -> list[str]:
        return get_activity_types()

    async def _fetch_where(self, field: str, value: Any, what: str) -> list[dict[str, Any]]:
        where = [{"FieldName": field, "Operator": "EqualTo", "Values": [to_int(value)]}]
        try:
            response = await self._fetch(where=where)
        except Exception as exc:
            logger.error("Error fetching activities by %s: %s", what, describe_error(exc))
            return []

        if not response.get("success"):
            logger.error(response.get("message"))
            return []

        return response.get("data") or []

    async def get_by_contact_id(self, contact_id: Any) -> list[dict[str, Any]]:
        """Activities referencing a contact (filtered server-side)."""
        return await self._fetch_where("contactId_c", contact_id, "contact")

    async def get_by_deal_id(self, deal_id: Any) -> list[dict[str, Any]]:
        """Activities referencing a deal (filtered server-side)."""
        return await self._fetch_where("dealId_c", deal_id, "deal")

    async def mark_completed(self, activity_id: Any) -> dict[str, Any] | None:
        try:
            payload = {"Id": to_int(activity_id), "completed_c": True}
            return await self._write_one(
                "update_record",
                payload,
                "mark activity as completed",
                notify_failures=False,
            )
        except Exception as exc:
            logger.error("Error marking activity as completed: %s", describe_error(exc))
            raise

    # =========================================================================
    # Derived Views
    # =========================================================================

    async def get_upcoming(self, limit: int = 10, *, now: datetime | None = None) -> list[dict[str, Any]]:
        """Open activities due now or later, soonest first, at most ``limit``."""
        try:
            activities = await self.get_all()
            now = parse_timestamp(now or datetime.now(timezone.utc))
            pending = [pair for pair in _open_with_due(activities) if pair[0] >= now]
            pending.sort(key=lambda pair: pair[0])
            return [activity for _, activity in pending[:limit]]
        except Exception as exc:
            logger.error("Error fetching upcoming activities: %s", describe_error(exc))
            return []

    async def get_overdue(self, *, now: datetime | None = None) -> list[dict[str, Any]]:
        """Open activities whose due date has passed, in fetch order."""
        try:
            activities = await self.get_all()
            now = parse_timestamp(now or datetime.now(timezone.utc))
            return [activity for due, activity in _open_with_due(activities) if due < now]
        except Exception as exc:
            logger.error("Error fetching overdue activities: %s", describe_error(exc))
            return []
