"""Record platform client - async wrapper over the hosted data platform's REST API.

Every call returns the platform's JSON envelope unchanged:
``{"success": bool, "data"?: ..., "results"?: [...], "message"?: str}``.
HTTP-level failures raise ``httpx.HTTPStatusError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .activities import ActivitiesService
    from .companies import CompaniesService
    from .contacts import ContactsService
    from .deals import DealsService
    from .notifications import Notifier
    from ..config import CRMDeskSettings


@dataclass
class RecordClientConfig:
    """Record platform connection settings."""

    api_url: str
    project_id: str
    public_key: str
    timeout_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: "CRMDeskSettings | None" = None) -> "RecordClientConfig":
        if settings is None:
            from ..config import settings as default_settings
            settings = default_settings

        if not settings.configured:
            raise ValueError(
                "project_id and public_key required. Set CRMDESK_PROJECT_ID and CRMDESK_PUBLIC_KEY"
            )
        return cls(
            api_url=settings.api_url,
            project_id=settings.project_id,
            public_key=settings.public_key,
            timeout_seconds=settings.timeout_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        """Export config as dictionary."""
        return {
            "api_url": self.api_url,
            "project_id": self.project_id,
            "public_key": self.public_key[:8] + "..." if self.public_key else None,
            "timeout_seconds": self.timeout_seconds,
        }


class RecordClient:
    """Record platform client with per-entity services.

    Usage:
        async with RecordClient.from_settings() as crm:
            contacts = await crm.contacts.get_all()
            deal = await crm.deals.update_stage(7, "Closed Won")
    """

    API_PREFIX = "/v1/tables"

    def __init__(self, config: RecordClientConfig, notifier: "Notifier | None" = None):
        self.config = config
        self._notifier = notifier
        self._client: httpx.AsyncClient | None = None

        # Entity services (initialized on enter)
        self._activities: ActivitiesService | None = None
        self._companies: CompaniesService | None = None
        self._contacts: ContactsService | None = None
        self._deals: DealsService | None = None

    @classmethod
    def from_settings(
        cls, settings: "CRMDeskSettings | None" = None, notifier: "Notifier | None" = None
    ) -> "RecordClient":
        return cls(RecordClientConfig.from_settings(settings), notifier=notifier)

    @property
    def notifier(self) -> "Notifier":
        if self._notifier is None:
            from .notifications import ConsoleNotifier
            self._notifier = ConsoleNotifier()
        return self._notifier

    async def __aenter__(self) -> "RecordClient":
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            timeout=self.config.timeout_seconds,
            headers={
                "Authorization": f"Bearer {self.config.public_key}",
                "X-Project-Id": self.config.project_id,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )
        self._init_services()
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()

    def _init_services(self) -> None:
        from .activities import ActivitiesService
        from .companies import CompaniesService
        from .contacts import ContactsService
        from .deals import DealsService

        self._activities = ActivitiesService(self, self.notifier)
        self._companies = CompaniesService(self, self.notifier)
        self._contacts = ContactsService(self, self.notifier)
        self._deals = DealsService(self, self.notifier)

    # Entity service properties
    @property
    def activities(self) -> "ActivitiesService":
        """Activities service."""
        if not self._activities:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._activities

    @property
    def companies(self) -> "CompaniesService":
        """Companies service."""
        if not self._companies:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._companies

    @property
    def contacts(self) -> "ContactsService":
        """Contacts service."""
        if not self._contacts:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._contacts

    @property
    def deals(self) -> "DealsService":
        """Deals service."""
        if not self._deals:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._deals

    # HTTP methods
    async def _post(self, endpoint: str, data: dict | None = None) -> dict[str, Any]:
        """Make POST request."""
        resp = await self._client.post(endpoint, json=data)
        resp.raise_for_status()
        return resp.json()

    async def _put(self, endpoint: str, data: dict | None = None) -> dict[str, Any]:
        """Make PUT request."""
        resp = await self._client.put(endpoint, json=data)
        resp.raise_for_status()
        return resp.json()

    def _records_path(self, table: str) -> str:
        return f"{self.API_PREFIX}/{table}/records"

    # Record operations
    async def fetch_records(self, table: str, params: dict[str, Any]) -> dict[str, Any]:
        """Query records of ``table``.

        Args:
            table: Table name, e.g. "contact_c"
            params: {"fields": [...], "where"?: [...], "whereGroups"?: {...}}
        """
        return await self._post(f"{self._records_path(table)}/query", params)

    async def get_record_by_id(
        self, table: str, record_id: int | None, params: dict[str, Any]
    ) -> dict[str, Any]:
        """Fetch a single record by Id."""
        return await self._post(f"{self._records_path(table)}/{record_id}/query", params)

    async def create_record(self, table: str, params: dict[str, Any]) -> dict[str, Any]:
        """Create records: params = {"records": [payload, ...]}."""
        return await self._post(self._records_path(table), params)

    async def update_record(self, table: str, params: dict[str, Any]) -> dict[str, Any]:
        """Update records: params = {"records": [{"Id": ..., ...}, ...]}."""
        return await self._put(self._records_path(table), params)

    async def delete_record(self, table: str, params: dict[str, Any]) -> dict[str, Any]:
        """Delete records: params = {"RecordIds": [...]}."""
        return await self._post(f"{self._records_path(table)}/delete", params)
