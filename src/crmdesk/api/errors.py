"""Exceptions raised by the entity services."""

from __future__ import annotations

from typing import Any


class CRMDeskError(Exception):
    """Base class for crmdesk errors."""


class RecordClientError(CRMDeskError):
    """The record platform reported ``success: false`` for a request."""


class RecordNotFoundError(RecordClientError):
    """A single-record lookup failed."""


class BatchOperationError(RecordClientError):
    """One or more records in a batch request failed.

    ``failures`` holds the raw per-record results reported by the platform,
    each shaped like ``{"success": False, "message": ..., ...}``.
    """

    def __init__(self, message: str, failures: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.failures = list(failures or [])


class InvalidStageError(CRMDeskError, ValueError):
    """A deal stage outside the fixed pipeline was requested."""

    def __init__(self, stage: Any):
        super().__init__("Invalid deal stage")
        self.stage = stage
