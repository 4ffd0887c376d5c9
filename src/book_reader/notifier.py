"""Synchronous fan-out of accepted position changes."""

import logging
from typing import Callable

from .models import PositionChange, PositionObserver

logger = logging.getLogger(__name__)


class PositionNotifier:
    """Delivers each accepted position change to every subscribed observer.

    Observers are called in subscription order on the caller's stack. A
    failing observer is logged and skipped; it cannot veto the change or stop
    the remaining observers.
    """

    def __init__(self):
        self._observers: list[PositionObserver] = []

    def __len__(self) -> int:
        return len(self._observers)

    def subscribe(self, observer: PositionObserver) -> Callable[[], None]:
        """
        Register an observer.

        Args:
            observer: Callable receiving a PositionChange

        Returns:
            A function that unsubscribes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            self.unsubscribe(observer)

        return unsubscribe

    def unsubscribe(self, observer: PositionObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def publish(self, change: PositionChange) -> None:
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception as e:
                logger.exception(f"Position observer {observer!r} failed: {e}")
