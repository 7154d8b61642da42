"""Application lifecycle state.

The lifecycle is a set of monotonic flags::

    (none) ──stage()──▶ PREPARED ──▶ PREPARED|STAGED
    (none) ──run()────▶ PREPARED ──▶ PREPARED|RUNNING

``PREPARED`` is entered exactly once, whichever entry point gets there
first. ``STAGED`` and ``RUNNING`` are set only after it, and a
failed preparation sets neither. Flags are never cleared.

Thread safety:
    ``enter()`` uses an RLock + double-check so that, under free-threading,
    two workers racing on the first request still prepare the app once.
"""

import threading
from enum import Flag, auto


class Lifecycle(Flag):
    """Lifecycle flags. Combined as the app moves forward."""

    UNSTAGED = 0
    STAGED = auto()
    PREPARED = auto()
    RUNNING = auto()


class ApplicationState:
    """Holds the lifecycle flags for one app.

    Transitions go through ``enter()``, which returns ``True`` only for the
    caller that actually performed the transition::

        if state.enter(Lifecycle.STAGED):
            ...  # first stage() call only
    """

    __slots__ = ("_lock", "_phase")

    def __init__(self) -> None:
        self._phase = Lifecycle.UNSTAGED
        self._lock = threading.RLock()

    @property
    def phase(self) -> Lifecycle:
        return self._phase

    @property
    def staged(self) -> bool:
        return Lifecycle.STAGED in self._phase

    @property
    def prepared(self) -> bool:
        return Lifecycle.PREPARED in self._phase

    @property
    def running(self) -> bool:
        return Lifecycle.RUNNING in self._phase

    @property
    def lock(self) -> threading.RLock:
        """Lock held while a transition's work is performed."""
        return self._lock

    def enter(self, flag: Lifecycle) -> bool:
        """Set *flag*. Returns ``False`` if it was already set."""
        if flag in self._phase:
            return False
        with self._lock:
            if flag in self._phase:
                return False
            self._phase |= flag
            return True

    def __repr__(self) -> str:
        return f"ApplicationState({self._phase!r})"
