"""Companies API - CRUD and search for company records."""

from __future__ import annotations

import logging
from typing import Any

from .base import RecordService, describe_error
from .fields import EntitySchema, FieldSpec

logger = logging.getLogger(__name__)

_TEXT_FIELDS = (
    FieldSpec("name_c"),
    FieldSpec("industry_c"),
    FieldSpec("size_c"),
    FieldSpec("website_c", default=""),
    FieldSpec("address_c", default=""),
    FieldSpec("notes_c", default=""),
)

COMPANY_SCHEMA = EntitySchema(
    table="company_c",
    label="Company",
    plural="companies",
    fields=(
        "name_c",
        "industry_c",
        "size_c",
        "website_c",
        "address_c",
        "notes_c",
        "createdAt_c",
    ),
    references=(),
    create_fields=_TEXT_FIELDS + (FieldSpec("createdAt_c", stamp=True),),
    update_fields=_TEXT_FIELDS,
)

SEARCH_FIELDS = ("name_c", "industry_c", "size_c")


class CompaniesService(RecordService):
    """Companies table.

    Usage:
        async with RecordClient.from_settings() as crm:
            companies = await crm.companies.get_all()
            matches = await crm.companies.search_companies("software")
    """

    schema = COMPANY_SCHEMA

    async def search_companies(self, query: str | None) -> list[dict[str, Any]]:
        """Companies whose name, industry or size contains ``query``.

        An empty query returns every company.
        """
        if not query:
            return await self.get_all()

        where_groups = {
            "operator": "OR",
            "subGroups": [
                {"conditions": [{"fieldName": name, "operator": "Contains", "values": [query]}]}
                for name in SEARCH_FIELDS
            ],
        }
        try:
            response = await self._fetch(whereGroups=where_groups)
        except Exception as exc:
            logger.error("Error searching companies: %s", describe_error(exc))
            return []

        if not response.get("success"):
            logger.error(response.get("message"))
            return []

        return response.get("data") or []
