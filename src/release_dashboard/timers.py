from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Protocol

from .constants import WORKOUT_END_MINUTES, WORKOUT_START_MINUTES, WORKOUT_WEEKDAYS
from .date_utils import start_of_day

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    """The slice of an asyncio event loop the scheduler relies on."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


@dataclass
class _Timer:
    key: str
    callback: Callable[[], Any]
    delay_s: float
    repeat: bool
    handle: TimerHandle | None = None

    def cancel(self) -> None:
        if self.handle is not None:
            self.handle.cancel()
            self.handle = None


class NamedScheduler:
    """
    Registry of named timers running on a single event loop.

    Each key owns at most one active timer. Starting a timer under a key that
    is already running stops the old one first, and `stop_all` tears down
    every key at once. Callbacks run on the loop thread, so a callback may
    start or stop timers (including its own) without locking.
    """

    def __init__(self, loop: TimerLoop | None = None) -> None:
        self._loop = loop
        self._timers: dict[str, _Timer] = {}

    def start_interval(self, key: str, callback: Callable[[], Any], period_ms: float) -> None:
        """Run `callback` every `period_ms` milliseconds under `key`, replacing any existing timer."""
        self._start(key, callback, period_ms, repeat=True)

    def start_timeout(self, key: str, callback: Callable[[], Any], delay_ms: float) -> None:
        """Run `callback` once after `delay_ms` milliseconds under `key`, replacing any existing timer."""
        self._start(key, callback, delay_ms, repeat=False)

    def stop(self, key: str) -> None:
        """Cancel the timer under `key`; does nothing if there is none."""
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
            logger.debug("Stopped timer %s", key)

    def stop_all(self) -> None:
        for key in list(self._timers):
            self.stop(key)

    def is_running(self, key: str) -> bool:
        return key in self._timers

    @property
    def keys(self) -> list[str]:
        return list(self._timers)

    def _start(self, key: str, callback: Callable[[], Any], delay_ms: float, repeat: bool) -> None:
        if delay_ms < 0:
            raise ValueError(f"timer '{key}' needs a non-negative delay, got {delay_ms}")
        self.stop(key)
        timer = _Timer(key=key, callback=callback, delay_s=delay_ms / 1000, repeat=repeat)
        self._timers[key] = timer
        self._arm(timer)
        logger.debug("Started %s timer %s (%s ms)", "interval" if repeat else "timeout", key, delay_ms)

    def _arm(self, timer: _Timer) -> None:
        timer.handle = self._resolve_loop().call_later(timer.delay_s, self._fire, timer)

    def _fire(self, timer: _Timer) -> None:
        if self._timers.get(timer.key) is not timer:
            return
        if timer.repeat:
            self._arm(timer)
        else:
            del self._timers[timer.key]
        timer.callback()

    def _resolve_loop(self) -> TimerLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop


def is_workout_reminder_time(now: datetime | None = None) -> bool:
    """True inside the weekday reminder window (Sunday to Thursday, 11:45 up to 12:00)."""
    now = now or datetime.now()
    minutes_since_midnight = now.hour * 60 + now.minute
    in_weekday_window = now.weekday() in WORKOUT_WEEKDAYS
    in_time_window = WORKOUT_START_MINUTES <= minutes_since_midnight < WORKOUT_END_MINUTES
    return in_weekday_window and in_time_window


def ms_until_midnight(now: datetime | None = None) -> int:
    """Milliseconds from `now` until the next local midnight, never negative."""
    now = now or datetime.now()
    next_midnight = start_of_day(now) + timedelta(days=1)
    return max((next_midnight - now) // timedelta(milliseconds=1), 0)
