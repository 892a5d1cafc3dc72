"""Per-client weekly summary for the physiotherapist dashboard."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta

from pydantic import BaseModel

from hep_tracker.gateway.records import AssignmentRecord, ClientRecord, CompletionRecord
from hep_tracker.progress.index import build_week_index


class ClientWeekSummary(BaseModel):
    """Assigned exercises and completions this week for one client."""

    client_id: str
    name: str
    email: str
    assigned: int
    completed_this_week: int


def summarize_client(
    client: ClientRecord,
    assignments: Sequence[AssignmentRecord],
    completions: Sequence[CompletionRecord],
    week_start: date,
) -> ClientWeekSummary:
    """Count a client's completions inside the week starting at week_start."""
    week_end = week_start + timedelta(days=6)
    counts = build_week_index(completions, week_start, week_end)
    return ClientWeekSummary(
        client_id=client.id,
        name=client.name,
        email=client.email,
        assigned=len(assignments),
        completed_this_week=sum(counts.values()),
    )
