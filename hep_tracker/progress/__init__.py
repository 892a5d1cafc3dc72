"""Completion-state reconciliation and weekly aggregation.

Pure functions over raw completion records, plus the selection session
that turns checkbox edits into minimal create/delete calls.
"""

from hep_tracker.progress.index import build_index, build_week_index
from hep_tracker.progress.normalize import normalize_day, normalize_link_id
from hep_tracker.progress.notify import CompletionNotifier, CompletionsChanged
from hep_tracker.progress.selection import SelectionPhase, SelectionSession, commit, reconcile, seed, toggle
from hep_tracker.progress.streak import compute_streak
from hep_tracker.progress.weekly import aggregate_week, daily_goal

__all__ = [
    "CompletionNotifier",
    "CompletionsChanged",
    "SelectionPhase",
    "SelectionSession",
    "aggregate_week",
    "build_index",
    "build_week_index",
    "commit",
    "compute_streak",
    "daily_goal",
    "normalize_day",
    "normalize_link_id",
    "reconcile",
    "seed",
    "toggle",
]
