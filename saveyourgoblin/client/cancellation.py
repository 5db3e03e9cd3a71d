"""
Cancellation tokens for in-flight requests.
"""

from typing import Callable, List

from .errors import Cancelled


class CancellationToken:
    """One-shot cancellation flag shared between a caller and a request."""

    def __init__(self):
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        for callback in list(self._callbacks):
            callback()
        self._callbacks.clear()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run `callback` on cancel (immediately if already cancelled)."""
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Forget a callback once the work it would abort has finished."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise Cancelled("Operation was cancelled")
