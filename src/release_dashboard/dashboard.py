from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from .config_source import ConfigSource
from .constants import DAY_IN_MS, TIMER_CONFIG_INTERVAL, TIMER_CONFIG_TIMEOUT, TIMER_ROTATE, TIMER_WORKOUT
from .dashboard_data import process_config
from .dashboard_models import ProcessedConfig, Team
from .errors import DashboardError, TransformError
from .settings import DashboardSettings
from .timers import NamedScheduler, is_workout_reminder_time, ms_until_midnight

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Keeps the dashboard view model fresh.

    Loads the config at start, rotates the team carousel, polls the workout
    reminder window and reloads the config every midnight. All of this runs
    on one asyncio loop through a shared NamedScheduler. A failed load keeps
    the last good view model and only flags the error.
    """

    def __init__(
        self,
        source: ConfigSource,
        scheduler: NamedScheduler,
        settings: DashboardSettings | None = None,
        on_change: Callable[["Dashboard"], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._scheduler = scheduler
        self._settings = settings or DashboardSettings()
        self._on_change = on_change
        self._clock = clock
        self._load_task: asyncio.Task[None] | None = None
        self._closed = False

        self.processed: ProcessedConfig | None = None
        self.active_slide = 0
        self.slide_interval_ms = self._settings.slide_interval_desktop_ms
        self.show_workout_reminder = False
        self.is_loading = True
        self.has_error = False
        self.error_message = ""

    @property
    def teams(self) -> list[Team]:
        return self.processed.teams if self.processed is not None else []

    @property
    def load_task(self) -> asyncio.Task[None] | None:
        """The most recently scheduled config load, if any."""
        return self._load_task

    def start(self) -> asyncio.Task[None]:
        """Kick off the first load and register every recurring timer. Must run inside the event loop."""
        task = self.schedule_load()
        self._start_rotation()
        self._start_workout_reminder()
        self._start_config_refresh()
        return task

    def schedule_load(self) -> asyncio.Task[None]:
        """Start a config load, superseding any load that is still in flight."""
        if self._load_task is not None and not self._load_task.done():
            logger.debug("Superseding in-flight config load")
            self._load_task.cancel()
        self._load_task = asyncio.get_running_loop().create_task(self.load_config())
        return self._load_task

    async def load_config(self) -> None:
        self.is_loading = True
        self.has_error = False
        self.error_message = ""

        try:
            config = await self._source.get_config()
        except DashboardError as exc:
            self._handle_error("Failed to load configuration", exc)
            return

        try:
            processed = process_config(config, self._clock())
        except TransformError as exc:
            self._handle_error("Failed to process configuration data", exc)
            return

        self.processed = processed
        self.active_slide = 0
        self.restart_rotation()
        self.is_loading = False
        logger.info(
            "Dashboard updated: %s, %d drops, %d teams, %d birthdays",
            processed.version_data.name,
            len(processed.drops),
            len(processed.teams),
            len(processed.birthdays),
        )
        self._notify()

    def select_slide(self, index: int) -> None:
        """Jump to a team slide and restart the rotation period from now."""
        self.active_slide = index
        self.restart_rotation()
        self._notify()

    def set_mobile(self, is_mobile: bool) -> None:
        """Switch between the handset and desktop rotation periods."""
        self.slide_interval_ms = (
            self._settings.slide_interval_mobile_ms if is_mobile else self._settings.slide_interval_desktop_ms
        )
        self.restart_rotation()

    def restart_rotation(self) -> None:
        self._scheduler.stop(TIMER_ROTATE)
        self._start_rotation()

    async def aclose(self) -> None:
        """Stop every timer and release the config source. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._scheduler.stop_all()
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        await self._source.aclose()

    def _start_rotation(self) -> None:
        self._scheduler.start_interval(TIMER_ROTATE, self._advance_slide, self.slide_interval_ms)

    def _advance_slide(self) -> None:
        if self.teams:
            self.active_slide = (self.active_slide + 1) % len(self.teams)
            self._notify()

    def _start_workout_reminder(self) -> None:
        self._update_workout_reminder()
        self._scheduler.start_interval(
            TIMER_WORKOUT,
            self._update_workout_reminder,
            self._settings.reminder_check_interval_ms,
        )

    def _update_workout_reminder(self) -> None:
        visible = is_workout_reminder_time(self._clock())
        if visible != self.show_workout_reminder:
            self.show_workout_reminder = visible
            self._notify()

    def _start_config_refresh(self) -> None:
        delay_ms = ms_until_midnight(self._clock())
        logger.info("Next config refresh in %.1f minutes", delay_ms / 60_000)
        self._scheduler.start_timeout(TIMER_CONFIG_TIMEOUT, self._on_first_midnight, delay_ms)

    def _on_first_midnight(self) -> None:
        self._reload_for_midnight()
        self._scheduler.start_interval(TIMER_CONFIG_INTERVAL, self._reload_for_midnight, DAY_IN_MS)

    def _reload_for_midnight(self) -> None:
        logger.info("Midnight refresh: reloading dashboard config")
        self._source.clear_cache()
        self.schedule_load()

    def _handle_error(self, message: str, error: Exception) -> None:
        logger.error("%s: %s", message, error)
        self.is_loading = False
        self.has_error = True
        self.error_message = str(error) or "An unexpected error occurred"
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)
