"""Operation guard - advisory busy tracking around mutating calls."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class OperationStatus(str, Enum):
    """Status of the most recent guarded operation."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


StatusListener = Callable[[OperationStatus], None]


class OperationGuard:
    """Tracks whether a mutating operation is in flight.

    The guard never rejects or queues a call: overlapping ``run`` calls are
    all executed. ``busy`` stays true while at least one is in flight and
    the status settles to the outcome of the last one to finish. Callers use
    ``busy`` to disable whatever triggers new operations.
    """

    def __init__(self) -> None:
        self._in_flight = 0
        self._status = OperationStatus.IDLE
        self._result: Any = None
        self._error: BaseException | None = None
        self._listeners: list[StatusListener] = []

    @property
    def busy(self) -> bool:
        return self._in_flight > 0

    @property
    def status(self) -> OperationStatus:
        return self._status

    @property
    def result(self) -> Any:
        """Result of the last successful operation."""
        return self._result

    @property
    def error(self) -> BaseException | None:
        """Error of the last failed operation, cleared on the next success."""
        return self._error

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Await ``fn()`` with busy set; busy is cleared however it ends."""
        self._in_flight += 1
        self._set_status(OperationStatus.PENDING)
        outcome = OperationStatus.FAILED
        try:
            result = await fn()
            self._result = result
            self._error = None
            outcome = OperationStatus.SUCCEEDED
            return result
        except BaseException as exc:
            self._error = exc
            raise
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._set_status(outcome)

    def _set_status(self, status: OperationStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                log.exception("Status listener failed")
