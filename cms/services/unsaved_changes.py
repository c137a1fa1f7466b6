"""One dirty flag for the whole page, shared by every editing form."""
from __future__ import annotations

import threading


class UnsavedChanges:
    def __init__(self) -> None:
        self._value = False
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._value

    def set(self, value: bool) -> None:
        with self._lock:
            self._value = bool(value)

    def reset(self) -> None:
        self.set(False)

    def should_confirm(self, confirmed: bool) -> bool:
        """True when a navigation must be confirmed before it happens."""
        return self._value and not confirmed
