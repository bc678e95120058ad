from __future__ import annotations

import itertools
import logging
import threading
from functools import partial
from typing import Callable, Optional

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY_SECONDS = 1.0


class AutosaveScheduler:
    """Debounced, single-flight runner for an autosave callback.

    Each `schedule()` call cancels the armed timer and arms a new one, so only
    the last call within `delay` seconds fires. A firing that lands while the
    previous callback is still running is deferred and re-armed once it
    completes.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        *,
        delay: float = AUTOSAVE_DELAY_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._tokens = itertools.count(1)
        self._token = 0
        self._in_flight = False
        self._rerun = False

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    def schedule(self) -> None:
        with self._lock:
            self._arm_locked()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._rerun = False

    def _arm_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._token = next(self._tokens)
        timer = self._timer_factory(self._delay, partial(self._fire, self._token))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire(self, token: int) -> None:
        with self._lock:
            if token != self._token or self._timer is None:
                return
            self._timer = None
            if self._in_flight:
                self._rerun = True
                return
            self._in_flight = True
        try:
            self._callback()
        except Exception:
            logger.exception("autosave callback failed")
        finally:
            with self._lock:
                self._in_flight = False
                if self._rerun:
                    self._rerun = False
                    self._arm_locked()
