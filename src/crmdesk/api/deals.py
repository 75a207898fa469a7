"""Deals API - pipeline records with stage transitions and stage board view."""

from __future__ import annotations

import logging
from typing import Any

from .base import RecordService, describe_error
from .errors import InvalidStageError
from .fields import EntitySchema, FieldSpec, to_float, to_int

logger = logging.getLogger(__name__)

DEAL_STAGES: tuple[str, ...] = (
    "Lead",
    "Qualified",
    "Proposal",
    "Negotiation",
    "Closed Won",
    "Closed Lost",
)

# Terminal stages pin probability regardless of what the caller sends.
FORCED_PROBABILITY: dict[str, int] = {"Closed Won": 100, "Closed Lost": 0}

_EDITABLE = (
    FieldSpec("title_c"),
    FieldSpec("value_c", coerce=to_float),
    FieldSpec("stage_c"),
    FieldSpec("probability_c", coerce=to_int),
    FieldSpec("closeDate_c"),
    FieldSpec("contactId_c", coerce=to_int),
    FieldSpec("companyId_c", coerce=to_int),
    FieldSpec("notes_c", default=""),
)

DEAL_SCHEMA = EntitySchema(
    table="deal_c",
    label="Deal",
    plural="deals",
    fields=(
        "title_c",
        "value_c",
        "stage_c",
        "probability_c",
        "closeDate_c",
        "notes_c",
        "createdAt_c",
    ),
    references=("contactId_c", "companyId_c"),
    create_fields=_EDITABLE + (FieldSpec("createdAt_c", stamp=True),),
    update_fields=_EDITABLE,
)


def get_deal_stages() -> list[str]:
    return list(DEAL_STAGES)


def stage_payload(deal_id: Any, new_stage: str, probability: Any = None) -> dict[str, Any]:
    """Update payload for a stage transition.

    Raises:
        InvalidStageError: ``new_stage`` is not one of ``DEAL_STAGES``.
    """
    if new_stage not in DEAL_STAGES:
        raise InvalidStageError(new_stage)

    payload: dict[str, Any] = {"Id": to_int(deal_id), "stage_c": new_stage}
    if new_stage in FORCED_PROBABILITY:
        payload["probability_c"] = FORCED_PROBABILITY[new_stage]
    elif probability is not None:
        payload["probability_c"] = to_int(probability)
    return payload


class DealsService(RecordService):
    """Deals table.

    Usage:
        async with RecordClient.from_settings() as crm:
            board = await crm.deals.get_deals_by_stage()
            await crm.deals.update_stage(7, "Closed Won")
    """

    schema = DEAL_SCHEMA

    @staticmethod
    def get_deal_stages() -> list[str]:
        return get_deal_stages()

    async def update_stage(
        self, deal_id: Any, new_stage: str, probability: Any = None
    ) -> dict[str, Any] | None:
        """Move a deal to ``new_stage``.

        "Closed Won" forces probability 100 and "Closed Lost" forces 0; other
        stages send ``probability`` only when given. An unknown stage raises
        ``InvalidStageError`` before anything is sent.
        """
        payload = stage_payload(deal_id, new_stage, probability)
        try:
            return await self._write_one(
                "update_record", payload, "update deal stage", notify_failures=False
            )
        except Exception as exc:
            logger.error("Error updating deal stage: %s", describe_error(exc))
            raise

    async def get_deals_by_stage(self) -> dict[str, list[dict[str, Any]]]:
        """Deals bucketed by stage; every stage key is present, in pipeline order."""
        try:
            deals = await self.get_all()
            return {
                stage: [deal for deal in deals if deal.get("stage_c") == stage]
                for stage in DEAL_STAGES
            }
        except Exception as exc:
            logger.error("Error getting deals by stage: %s", describe_error(exc))
            return {}
