"""Completion change notifications.

Views rendered independently of the checklist (weekly chart, therapist
summary) subscribe here to refresh after a save, without the reconciler
knowing about any of them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from hep_tracker.progress.types import CalendarDay


@dataclass(frozen=True)
class CompletionsChanged:
    """Completions were created and/or deleted for one client and day."""

    client_email: str | None
    day: CalendarDay
    created: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()


CompletionObserver = Callable[[CompletionsChanged], None]


class CompletionNotifier:
    """Fan-out of CompletionsChanged events to subscribed observers."""

    def __init__(self) -> None:
        self._observers: list[CompletionObserver] = []

    def subscribe(self, observer: CompletionObserver) -> Callable[[], None]:
        """Register an observer.

        Returns:
            Callable that removes the observer again
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def notify(self, event: CompletionsChanged) -> None:
        """Deliver an event to every observer.

        A failing observer is logged and does not stop delivery to the rest.
        """
        logger.debug(
            f"Completions changed for {event.client_email or 'unknown client'} on {event.day}: "
            f"+{len(event.created)} -{len(event.deleted)}"
        )
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception(f"Completion observer {observer!r} failed")
