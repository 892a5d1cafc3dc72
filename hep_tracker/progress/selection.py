"""Selection reconciler.

Reconciles the checkbox state a client edits for one day against the
completion records already stored for that day.

Lifecycle of a SelectionSession:

    UNLOADED -> SEEDED -> EDITING (toggle*) -> RECONCILING -> COMMITTED | COMMITTED_PARTIAL

Writes are diff-based: only assignments whose checkbox disagrees with the
store produce a create or a delete, so saving an unchanged selection issues
no calls at all. A committed session is closed; callers reload from the
store and seed a new session instead of patching the old one.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from loguru import logger

from hep_tracker.core.errors import PartialSaveFailure, SelectionPhaseError, UnknownAssignmentError
from hep_tracker.gateway.base import RecordGateway
from hep_tracker.gateway.records import AssignmentRecord, CompletionRecord
from hep_tracker.progress.index import build_index
from hep_tracker.progress.normalize import require_day
from hep_tracker.progress.notify import CompletionNotifier, CompletionsChanged
from hep_tracker.progress.types import CalendarDay, CompletionEdit, CompletionIndex, EditSet, FailedEdit, SelectionState


def seed(assignments: Iterable[AssignmentRecord], index: Mapping[str, str]) -> SelectionState:
    """Initial checkbox state: an assignment is checked if it has a completion."""
    return {assignment.id: assignment.id in index for assignment in assignments}


def toggle(state: Mapping[str, bool], assignment_id: str) -> SelectionState:
    """Return a copy of state with one assignment flipped.

    Raises:
        UnknownAssignmentError: If the assignment was not seeded
    """
    if assignment_id not in state:
        raise UnknownAssignmentError(assignment_id)
    updated = dict(state)
    updated[assignment_id] = not updated[assignment_id]
    return updated


def reconcile(
    state: Mapping[str, bool],
    previous_index: Mapping[str, str],
    target_day: date | CalendarDay,
) -> EditSet:
    """Compute the minimal edits that make the store match state.

    Checked without a stored completion -> create. Unchecked with a stored
    completion -> delete that completion. Everything else is already
    consistent and produces nothing.
    """
    edit_set = EditSet(day=require_day(target_day))
    for assignment_id, selected in state.items():
        completion_id = previous_index.get(assignment_id)
        if selected and completion_id is None:
            edit_set.to_create.append(assignment_id)
        elif not selected and completion_id is not None:
            edit_set.to_delete.append(completion_id)
    return edit_set


@dataclass
class CommitResult:
    """Outcome of a fully successful commit."""

    applied: list[CompletionEdit] = field(default_factory=list)
    created: list[CompletionRecord] = field(default_factory=list)


async def _apply_edit(
    gateway: RecordGateway,
    edit: CompletionEdit,
    timeout_seconds: float,
    max_attempts: int,
) -> CompletionRecord | None:
    """Issue the gateway call for one edit, with bounded timeout and retries."""
    log = logger.bind(action=edit.action, target=edit.target_id, day=edit.day)
    attempt = 0
    while True:
        attempt += 1
        try:
            if edit.action == "create":
                return await asyncio.wait_for(gateway.create_completion(edit.target_id, edit.day), timeout_seconds)
            await asyncio.wait_for(gateway.delete_completion(edit.target_id), timeout_seconds)
            return None
        except Exception as e:
            log.warning(f"Completion edit failed (attempt {attempt}/{max_attempts}): {e!r}")
            # A timed-out create may still have been stored; retrying it could duplicate the completion.
            if attempt >= max_attempts or (edit.action == "create" and isinstance(e, TimeoutError)):
                raise


async def commit(
    edit_set: EditSet,
    gateway: RecordGateway,
    *,
    timeout_seconds: float = 10.0,
    max_attempts: int = 1,
) -> CommitResult:
    """Persist an edit set, one independent call per edit.

    The record store has no multi-record transaction, so the calls run
    concurrently and a failure on one edit never stops the others. Edits
    that succeeded are kept even when others fail.

    Args:
        edit_set: Output of reconcile
        gateway: Record store
        timeout_seconds: Upper bound for each call
        max_attempts: Attempts per edit (1 disables retry)

    Returns:
        CommitResult with every applied edit and the created records

    Raises:
        PartialSaveFailure: If any call failed; lists only the failed edits
    """
    edits = edit_set.edits()
    if not edits:
        return CommitResult()

    outcomes = await asyncio.gather(
        *(_apply_edit(gateway, edit, timeout_seconds, max_attempts) for edit in edits),
        return_exceptions=True,
    )

    result = CommitResult()
    failed: list[FailedEdit] = []
    for edit, outcome in zip(edits, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            failed.append(FailedEdit(edit=edit, error=str(outcome) or type(outcome).__name__))
            continue
        result.applied.append(edit)
        if outcome is not None:
            result.created.append(outcome)

    logger.info(
        f"Committed completions for {edit_set.day}: {len(result.applied)} applied, {len(failed)} failed "
        f"(create={len(edit_set.to_create)}, delete={len(edit_set.to_delete)})"
    )

    if failed:
        raise PartialSaveFailure(failed=failed, applied=result.applied)
    return result


class SelectionPhase(StrEnum):
    UNLOADED = "unloaded"
    SEEDED = "seeded"
    EDITING = "editing"
    RECONCILING = "reconciling"
    COMMITTED = "committed"
    COMMITTED_PARTIAL = "committed_partial"


_OPEN_PHASES = {SelectionPhase.SEEDED, SelectionPhase.EDITING}


class SelectionSession:
    """Checkbox state for one client and one day, from seed to commit.

    Args:
        day: Target calendar day
        client_email: Owner of the selection, carried on change events
        notifier: Observers to tell about applied edits
        timeout_seconds: Upper bound for each gateway call during commit
        max_attempts: Attempts per edit during commit
    """

    def __init__(
        self,
        day: date | CalendarDay,
        *,
        client_email: str | None = None,
        notifier: CompletionNotifier | None = None,
        timeout_seconds: float = 10.0,
        max_attempts: int = 1,
    ):
        self.day = require_day(day)
        self.client_email = client_email
        self.notifier = notifier
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.phase = SelectionPhase.UNLOADED
        self._state: SelectionState = {}
        self._index: CompletionIndex = {}

    @property
    def state(self) -> SelectionState:
        return dict(self._state)

    @property
    def index(self) -> CompletionIndex:
        return dict(self._index)

    def seed(self, assignments: Iterable[AssignmentRecord], completions: Iterable[CompletionRecord]) -> SelectionState:
        """Build the index for the target day and the matching checkbox state."""
        if self.phase is not SelectionPhase.UNLOADED:
            raise SelectionPhaseError(f"Selection for {self.day} is already {self.phase}")
        self._index = build_index(completions, self.day)
        self._state = seed(assignments, self._index)
        self.phase = SelectionPhase.SEEDED
        return self.state

    def _require_open(self) -> None:
        if self.phase not in _OPEN_PHASES:
            raise SelectionPhaseError(f"Selection for {self.day} cannot be edited while {self.phase}")

    def toggle(self, assignment_id: str) -> bool:
        """Flip one checkbox and return its new value."""
        self._require_open()
        self._state = toggle(self._state, assignment_id)
        self.phase = SelectionPhase.EDITING
        return self._state[assignment_id]

    def set_selected(self, assignment_id: str, selected: bool) -> None:
        """Set one checkbox, toggling only if it differs."""
        self._require_open()
        if assignment_id not in self._state:
            raise UnknownAssignmentError(assignment_id)
        if self._state[assignment_id] != selected:
            self.toggle(assignment_id)

    def apply(self, selection: Mapping[str, bool]) -> None:
        """Set several checkboxes at once; unknown ids are rejected before any change."""
        self._require_open()
        for assignment_id in selection:
            if assignment_id not in self._state:
                raise UnknownAssignmentError(assignment_id)
        for assignment_id, selected in selection.items():
            self.set_selected(assignment_id, bool(selected))

    def reconcile(self) -> EditSet:
        """Diff the current state against the seeded index. Pure."""
        if self.phase is SelectionPhase.UNLOADED:
            raise SelectionPhaseError("Selection has not been seeded")
        return reconcile(self._state, self._index, self.day)

    async def commit(self, gateway: RecordGateway) -> CommitResult:
        """Persist the diff and close the session.

        Observers are notified whenever at least one edit was applied, even
        if others failed, so that other views pick up what did change.

        Raises:
            PartialSaveFailure: If any create/delete failed
        """
        self._require_open()
        edit_set = self.reconcile()
        self.phase = SelectionPhase.RECONCILING

        try:
            result = await commit(
                edit_set,
                gateway,
                timeout_seconds=self.timeout_seconds,
                max_attempts=self.max_attempts,
            )
        except PartialSaveFailure as e:
            self.phase = SelectionPhase.COMMITTED_PARTIAL
            self._notify(e.applied)
            raise
        except BaseException:
            self.phase = SelectionPhase.COMMITTED_PARTIAL
            raise

        self.phase = SelectionPhase.COMMITTED
        self._notify(result.applied)
        return result

    def _notify(self, applied: list[CompletionEdit]) -> None:
        if self.notifier is None or not applied:
            return
        self.notifier.notify(
            CompletionsChanged(
                client_email=self.client_email,
                day=self.day,
                created=tuple(edit.target_id for edit in applied if edit.action == "create"),
                deleted=tuple(edit.target_id for edit in applied if edit.action == "delete"),
            )
        )
