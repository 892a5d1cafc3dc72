"""Canonical error types for the home exercise program tracker.

Two kinds of problems exist:
- Record-level anomalies (unparseable dates, missing link identities) are
  never raised. The offending record is excluded and tagged with a SkipReason.
- Operational failures (record store unreachable, partially failed save)
  are raised with the exceptions below and surfaced to the user.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hep_tracker.progress.types import CompletionEdit, FailedEdit


class SkipReason(StrEnum):
    """Why a raw record was left out of an index or aggregate."""

    UNPARSEABLE_DATE = "UNPARSEABLE_DATE"
    MISSING_LINK_IDENTITY = "MISSING_LINK_IDENTITY"


class GatewayUnavailable(RuntimeError):
    """Raised when the record store cannot be reached or rejects a call.

    Attributes:
        operation: Gateway operation that failed (e.g. "list_completions_for_client")
        status_code: HTTP status returned by the store, if any
    """

    def __init__(self, operation: str, message: str, status_code: int | None = None):
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation}: {message}")


class PartialSaveFailure(RuntimeError):
    """Raised by commit when one or more create/delete calls failed.

    Edits that succeeded are not rolled back. Reloading and reconciling
    again produces exactly the edits that are still needed.

    Attributes:
        failed: Edits whose calls failed, with the error text
        applied: Edits that were persisted
    """

    def __init__(self, failed: list[FailedEdit], applied: list[CompletionEdit]):
        self.failed = failed
        self.applied = applied
        super().__init__(f"{len(failed)} of {len(failed) + len(applied)} completion edit(s) failed")


class UnknownAssignmentError(LookupError):
    """Raised when a selection refers to an assignment that was not seeded."""

    def __init__(self, assignment_id: str):
        self.assignment_id = assignment_id
        super().__init__(f"Assignment {assignment_id!r} is not part of this selection")


class SelectionPhaseError(RuntimeError):
    """Raised when a selection session is used out of order.

    A session must be seeded before it is edited, and is closed once committed.
    """
