"""Shared CRUD plumbing for the entity services."""

from __future__ import annotations

import enum
import json
import logging
from typing import Any, Protocol

from .errors import BatchOperationError, RecordClientError, RecordNotFoundError
from .fields import EntitySchema, to_int
from .notifications import ConsoleNotifier, Notifier

logger = logging.getLogger(__name__)


class FailurePolicy(str, enum.Enum):
    SWALLOW = "swallow"
    RAISE = "raise"


# Declared failure handling per operation. SWALLOW: log (and notify where a
# message exists) then return the default. RAISE: log then propagate.
FAILURE_POLICY: dict[str, FailurePolicy] = {
    "get_all": FailurePolicy.SWALLOW,
    "get_by_id": FailurePolicy.RAISE,
    "create": FailurePolicy.RAISE,
    "update": FailurePolicy.RAISE,
    "delete": FailurePolicy.SWALLOW,
    "bulk_update": FailurePolicy.SWALLOW,
    "bulk_delete": FailurePolicy.SWALLOW,
    "get_upcoming": FailurePolicy.SWALLOW,
    "get_overdue": FailurePolicy.SWALLOW,
    "get_by_contact_id": FailurePolicy.SWALLOW,
    "get_by_deal_id": FailurePolicy.SWALLOW,
    "search_companies": FailurePolicy.SWALLOW,
    "get_deals_by_stage": FailurePolicy.SWALLOW,
    "update_stage": FailurePolicy.RAISE,
    "mark_completed": FailurePolicy.RAISE,
}


class RecordAPI(Protocol):
    """The subset of the record platform client the services call."""

    async def fetch_records(self, table: str, params: dict[str, Any]) -> dict[str, Any]: ...

    async def get_record_by_id(
        self, table: str, record_id: int | None, params: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def create_record(self, table: str, params: dict[str, Any]) -> dict[str, Any]: ...

    async def update_record(self, table: str, params: dict[str, Any]) -> dict[str, Any]: ...

    async def delete_record(self, table: str, params: dict[str, Any]) -> dict[str, Any]: ...


def split_results(results: list[dict[str, Any]]) -> tuple[list[dict], list[dict]]:
    """Partition per-record batch results into (successful, failed)."""
    successful = [r for r in results if r.get("success")]
    failed = [r for r in results if not r.get("success")]
    return successful, failed


def describe_error(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class RecordService:
    """Base class for one entity table.

    Subclasses set ``schema``; everything else is uniform across entities.
    """

    schema: EntitySchema

    def __init__(self, client: RecordAPI, notifier: Notifier | None = None):
        self._client = client
        self._notifier = notifier or ConsoleNotifier()

    @property
    def table(self) -> str:
        return self.schema.table

    @staticmethod
    def policy(operation: str) -> FailurePolicy:
        return FAILURE_POLICY[operation]

    def _notify(self, message: Any) -> None:
        if message:
            self._notifier.error(str(message))

    def _report_failed(self, what: str, failed: list[dict[str, Any]], *, notify: bool = True) -> None:
        logger.error("%s: %s", what, json.dumps(failed, default=str))
        if notify:
            for record in failed:
                self._notify(record.get("message"))

    async def _fetch(self, **extra: Any) -> dict[str, Any]:
        params: dict[str, Any] = {"fields": self.schema.field_selection()}
        params.update(extra)
        return await self._client.fetch_records(self.table, params)

    async def _write_one(
        self,
        method: str,
        payload: dict[str, Any],
        action: str,
        *,
        notify_failures: bool = True,
    ) -> dict[str, Any] | None:
        """Submit a single-record batch and return the written record."""
        send = getattr(self._client, method)
        response = await send(self.table, {"records": [payload]})

        failure = f"Failed to {action}"
        if not response.get("success"):
            logger.error(response.get("message"))
            self._notify(response.get("message"))
            raise RecordClientError(failure)

        results = response.get("results")
        if results:
            _, failed = split_results(results)
            if failed:
                self._report_failed(failure, failed, notify=notify_failures)
                raise BatchOperationError(failure, failed)
            return results[0].get("data")

        return response.get("data")

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    async def get_all(self) -> list[dict[str, Any]]:
        """All records of this table, in platform order."""
        try:
            response = await self._fetch()
        except Exception as exc:
            logger.error("Error fetching %s: %s", self.schema.plural, describe_error(exc))
            self._notify(f"Failed to load {self.schema.plural}")
            return []

        if not response.get("success"):
            logger.error(response.get("message"))
            self._notify(response.get("message"))
            return []

        return response.get("data") or []

    async def get_by_id(self, record_id: Any) -> dict[str, Any] | None:
        """One record by Id.

        Raises:
            RecordNotFoundError: the platform reported failure.
        """
        try:
            response = await self._client.get_record_by_id(
                self.table, to_int(record_id), {"fields": self.schema.field_selection()}
            )
            if not response.get("success"):
                logger.error(response.get("message"))
                self._notify(response.get("message"))
                raise RecordNotFoundError(f"{self.schema.label} not found")
            return response.get("data")
        except Exception as exc:
            logger.error(
                "Error fetching %s %s: %s", self.schema.label.lower(), record_id, describe_error(exc)
            )
            raise

    async def create(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Create a record from ``data`` restricted to the entity's known fields."""
        label = self.schema.label.lower()
        try:
            payload = self.schema.create_payload(data)
            return await self._write_one("create_record", payload, f"create {label}")
        except Exception as exc:
            logger.error("Error creating %s: %s", label, describe_error(exc))
            raise

    async def update(self, record_id: Any, data: dict[str, Any]) -> dict[str, Any] | None:
        """Update a record; fields absent from ``data`` follow the entity's rules."""
        label = self.schema.label.lower()
        try:
            payload = self.schema.update_payload(record_id, data)
            return await self._write_one("update_record", payload, f"update {label}")
        except Exception as exc:
            logger.error("Error updating %s: %s", label, describe_error(exc))
            raise

    async def delete(self, record_id: Any) -> bool:
        """Delete one record. Never raises; failures resolve to ``False``."""
        label = self.schema.label.lower()
        try:
            response = await self._client.delete_record(
                self.table, {"RecordIds": [to_int(record_id)]}
            )
            if not response.get("success"):
                logger.error(response.get("message"))
                self._notify(response.get("message"))
                return False

            results = response.get("results")
            if results:
                _, failed = split_results(results)
                if failed:
                    self._report_failed(f"Failed to delete {label}", failed)
                    return False

            return True
        except Exception as exc:
            logger.error("Error deleting %s: %s", label, describe_error(exc))
            return False
