"""Record platform client and entity services.

Usage:
    from crmdesk.api import RecordClient

    async with RecordClient.from_settings() as crm:
        contacts = await crm.contacts.get_all()
        board = await crm.deals.get_deals_by_stage()
        upcoming = await crm.activities.get_upcoming(limit=5)

Services accept any client exposing fetch_records, get_record_by_id,
create_record, update_record and delete_record coroutines:

    contacts = ContactsService(client, notifier)
"""

from .client import RecordClient, RecordClientConfig
from .activities import ACTIVITY_TYPES, ActivitiesService, get_activity_types
from .companies import CompaniesService
from .contacts import ContactsService, contacts_to_csv
from .deals import DEAL_STAGES, DealsService, get_deal_stages
from .base import FAILURE_POLICY, FailurePolicy, RecordService
from .errors import (
    BatchOperationError,
    CRMDeskError,
    InvalidStageError,
    RecordClientError,
    RecordNotFoundError,
)
from .notifications import ConsoleNotifier, Notifier, NullNotifier

__all__ = [
    "RecordClient",
    "RecordClientConfig",
    "RecordService",
    "ActivitiesService",
    "CompaniesService",
    "ContactsService",
    "DealsService",
    "ACTIVITY_TYPES",
    "DEAL_STAGES",
    "get_activity_types",
    "get_deal_stages",
    "contacts_to_csv",
    "FAILURE_POLICY",
    "FailurePolicy",
    "CRMDeskError",
    "RecordClientError",
    "RecordNotFoundError",
    "BatchOperationError",
    "InvalidStageError",
    "Notifier",
    "ConsoleNotifier",
    "NullNotifier",
]
