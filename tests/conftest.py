"""Shared test fixtures for the crmdesk test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

SAMPLE_PROJECT_ID = "proj_test123"
SAMPLE_PUBLIC_KEY = "pk_test_abcdef123456"
SAMPLE_API_URL = "https://records.example.test"


# ============================================================================
# Mock Record Data
# ============================================================================

MOCK_COMPANY = {
    "Id": 3,
    "Name": "Acme Corp",
    "name_c": "Acme Corp",
    "industry_c": "Software",
    "size_c": "51-200",
    "website_c": "https://acme.example",
    "address_c": "1 Main St",
    "notes_c": "",
    "createdAt_c": "2024-01-10T09:00:00.000Z",
}

MOCK_CONTACT = {
    "Id": 1,
    "Name": "Ada Lovelace",
    "firstName_c": "Ada",
    "lastName_c": "Lovelace",
    "email_c": "ada@acme.example",
    "phone_c": "+15551234567",
    "title_c": "CTO",
    "notes_c": "",
    "createdAt_c": "2024-01-15T10:00:00.000Z",
    "updatedAt_c": "2024-01-16T10:00:00.000Z",
    "companyId_c": {"Id": 3, "Name": "Acme Corp"},
}

MOCK_DEAL = {
    "Id": 7,
    "Name": "Acme renewal",
    "title_c": "Acme renewal",
    "value_c": 12000.0,
    "stage_c": "Proposal",
    "probability_c": 50,
    "closeDate_c": "2024-03-01",
    "notes_c": "",
    "createdAt_c": "2024-01-20T10:00:00.000Z",
    "contactId_c": {"Id": 1, "Name": "Ada Lovelace"},
    "companyId_c": {"Id": 3, "Name": "Acme Corp"},
}

MOCK_ACTIVITY = {
    "Id": 11,
    "Name": "Kickoff call",
    "type_c": "Call",
    "subject_c": "Kickoff call",
    "description_c": "",
    "dueDate_c": "2024-02-01T15:00:00.000Z",
    "completed_c": False,
    "createdAt_c": "2024-01-20T10:00:00.000Z",
    "contactId_c": {"Id": 1, "Name": "Ada Lovelace"},
    "dealId_c": {"Id": 7, "Name": "Acme renewal"},
}


# ============================================================================
# Fakes
# ============================================================================


class FakeRecordClient:
    """Record platform stub that records calls and replays scripted responses.

    Each method returns ``responses[method]``; a response that is an
    exception instance is raised instead.
    """

    METHODS = ("fetch_records", "get_record_by_id", "create_record", "update_record", "delete_record")

    def __init__(self, **responses: Any):
        self.responses: dict[str, Any] = {name: {"success": True, "data": []} for name in self.METHODS}
        self.responses.update(responses)
        self.calls: list[tuple[str, tuple]] = []

    def _reply(self, method: str, *args: Any) -> dict[str, Any]:
        self.calls.append((method, args))
        response = self.responses[method]
        if isinstance(response, BaseException):
            raise response
        return response

    async def fetch_records(self, table, params):
        return self._reply("fetch_records", table, params)

    async def get_record_by_id(self, table, record_id, params):
        return self._reply("get_record_by_id", table, record_id, params)

    async def create_record(self, table, params):
        return self._reply("create_record", table, params)

    async def update_record(self, table, params):
        return self._reply("update_record", table, params)

    async def delete_record(self, table, params):
        return self._reply("delete_record", table, params)

    def last(self, method: str) -> tuple:
        for name, args in reversed(self.calls):
            if name == method:
                return args
        raise AssertionError(f"{method} was never called")


class InMemoryRecordClient:
    """Record platform stub that keeps created records per table."""

    def __init__(self):
        self.tables: dict[str, dict[int, dict[str, Any]]] = {}
        self._next_id = 1

    def _rows(self, table: str) -> dict[int, dict[str, Any]]:
        return self.tables.setdefault(table, {})

    async def fetch_records(self, table, params):
        return {"success": True, "data": list(self._rows(table).values())}

    async def get_record_by_id(self, table, record_id, params):
        record = self._rows(table).get(record_id)
        if record is None:
            return {"success": False, "message": f"Record {record_id} not found"}
        return {"success": True, "data": dict(record)}

    async def create_record(self, table, params):
        results = []
        for payload in params["records"]:
            record = {**payload, "Id": self._next_id}
            self._rows(table)[self._next_id] = record
            self._next_id += 1
            results.append({"success": True, "data": dict(record)})
        return {"success": True, "results": results}

    async def update_record(self, table, params):
        results = []
        for payload in params["records"]:
            record = self._rows(table).get(payload["Id"])
            if record is None:
                results.append({"success": False, "Id": payload["Id"], "message": "Record not found"})
                continue
            record.update(payload)
            results.append({"success": True, "data": dict(record)})
        return {"success": True, "results": results}

    async def delete_record(self, table, params):
        results = []
        for record_id in params["RecordIds"]:
            removed = self._rows(table).pop(record_id, None)
            results.append({"success": removed is not None, "Id": record_id})
        return {"success": True, "results": results}


class RecordingNotifier:
    """Notification sink that keeps every message."""

    def __init__(self):
        self.messages: list[str] = []

    def error(self, message: str) -> None:
        self.messages.append(message)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def fake_client():
    return FakeRecordClient()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def settings_factory():
    """Build CRMDeskSettings without reading the environment or .env."""
    def _create(**overrides):
        from crmdesk.config import CRMDeskSettings

        values = {
            "api_url": SAMPLE_API_URL,
            "project_id": SAMPLE_PROJECT_ID,
            "public_key": SAMPLE_PUBLIC_KEY,
        }
        values.update(overrides)
        return CRMDeskSettings(_env_file=None, **values)
    return _create


@pytest.fixture
def mock_http_client():
    """Create a mock httpx.AsyncClient."""
    client = AsyncMock()

    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {"success": True, "data": []}
    response.raise_for_status = MagicMock()

    client.post = AsyncMock(return_value=response)
    client.put = AsyncMock(return_value=response)

    return client


@pytest.fixture
def mock_record_client(settings_factory, mock_http_client, notifier):
    """RecordClient with a mocked HTTP layer and initialized services."""
    from crmdesk.api.client import RecordClient

    client = RecordClient.from_settings(settings_factory(), notifier=notifier)
    client._client = mock_http_client
    client._init_services()
    return client


@pytest.fixture
def mock_response():
    """Factory fixture to create mock HTTP responses."""
    def _create_response(data: dict[str, Any], status_code: int = 200):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = data
        response.raise_for_status = MagicMock()
        if status_code >= 400:
            from httpx import HTTPStatusError
            response.raise_for_status.side_effect = HTTPStatusError(
                f"HTTP {status_code}", request=MagicMock(), response=response
            )
        return response
    return _create_response


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()


@pytest.fixture
def mock_crm_context():
    """Stand-in for the object yielded by ``async with RecordClient...``."""
    crm = MagicMock()

    crm.contacts = MagicMock()
    crm.contacts.get_all = AsyncMock(return_value=[MOCK_CONTACT])
    crm.contacts.get_by_id = AsyncMock(return_value=MOCK_CONTACT)
    crm.contacts.delete = AsyncMock(return_value=True)
    crm.contacts.bulk_delete = AsyncMock(return_value={
        "deleted": [{"success": True}], "errors": [], "successCount": 2, "errorCount": 0,
    })
    crm.contacts.bulk_export = AsyncMock(return_value={
        "success": True, "filename": "contacts_export_2024-01-16.csv", "count": 1,
    })

    crm.companies = MagicMock()
    crm.companies.get_all = AsyncMock(return_value=[MOCK_COMPANY])
    crm.companies.search_companies = AsyncMock(return_value=[MOCK_COMPANY])

    crm.deals = MagicMock()
    crm.deals.get_all = AsyncMock(return_value=[MOCK_DEAL])
    crm.deals.get_deals_by_stage = AsyncMock(return_value={
        "Lead": [], "Qualified": [], "Proposal": [MOCK_DEAL],
        "Negotiation": [], "Closed Won": [], "Closed Lost": [],
    })
    crm.deals.update_stage = AsyncMock(return_value={**MOCK_DEAL, "stage_c": "Closed Won"})

    crm.activities = MagicMock()
    crm.activities.get_upcoming = AsyncMock(return_value=[MOCK_ACTIVITY])
    crm.activities.get_overdue = AsyncMock(return_value=[])
    crm.activities.mark_completed = AsyncMock(return_value={**MOCK_ACTIVITY, "completed_c": True})

    return crm


@pytest.fixture
def mock_client_factory(mock_crm_context):
    """Produce mock RecordClient async context managers."""
    def _create():
        mock_instance = MagicMock()
        mock_instance.__aenter__ = AsyncMock(return_value=mock_crm_context)
        mock_instance.__aexit__ = AsyncMock(return_value=None)
        return mock_instance
    return _create
