from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable

from .constants import (
    DAY_IN_MS,
    DEFAULT_TEAM_BORDER_COLOR,
    DEFAULT_TEAM_ICON_COLOR,
    DEFAULT_TEAM_NAME,
    MAX_BIRTHDAYS,
    UPCOMING_BIRTHDAY_WINDOW_DAYS,
)
from .dashboard_models import (
    AppConfig,
    Birthday,
    Drop,
    DropStatus,
    Feature,
    ProcessedConfig,
    RawVersionData,
    Team,
    VersionData,
)
from .date_utils import (
    days_between,
    format_annual_date,
    format_short_date,
    next_occurrence,
    parse_drop_date,
    parse_instant,
    start_of_day,
)
from .errors import DashboardError, TransformError

logger = logging.getLogger(__name__)

_DAY = timedelta(milliseconds=DAY_IN_MS)
_ZERO = timedelta(0)


def process_config(config: AppConfig, now: datetime | None = None) -> ProcessedConfig:
    """
    Build the display model for one config load.

    - Version window progress, days and weeks left.
    - Roadmap drops ordered by date with completed/current/upcoming statuses.
    - Teams with defaults applied and features normalized.
    - The two nearest birthdays, plus the one inside the reminder window (if any).

    Any unexpected failure is raised as TransformError so callers can report it
    separately from fetch and validation problems.
    """

    now = now or datetime.now()
    try:
        version_data = compute_version_data(config.version_data, now)
        weeks_left = max(_round_to(version_data.days_left / 7, 1), 0)
        drops = decorate_drops(config.drops, now)
        teams = [decorate_team(team) for team in config.teams]
        birthdays = prepare_birthdays(config.birthdays, now)
    except DashboardError:
        raise
    except Exception as exc:
        raise TransformError(f"Failed to process configuration data: {exc}") from exc

    # Track the upcoming birthday by position so equal-valued entries stay distinct.
    upcoming_index = next(
        (idx for idx, birthday in enumerate(birthdays) if birthday.days_away <= UPCOMING_BIRTHDAY_WINDOW_DAYS),
        None,
    )
    upcoming_birthday = birthdays[upcoming_index] if upcoming_index is not None else None
    next_birthday = next((birthday for idx, birthday in enumerate(birthdays) if idx != upcoming_index), None)

    return ProcessedConfig(
        version_data=version_data,
        weeks_left=weeks_left,
        drops=drops,
        teams=teams,
        birthdays=birthdays,
        upcoming_birthday=upcoming_birthday,
        next_birthday=next_birthday,
        has_upcoming_birthday=upcoming_birthday is not None,
    )


def compute_version_data(raw: RawVersionData, now: datetime) -> VersionData:
    """
    Resolve the release window and derive progress against `now`.

    A zero-length (or inverted) window yields zero days and zero progress.
    """

    start = _resolve_bound(raw.start_date, "startDate")
    end = _resolve_bound(raw.end_date, "endDate")

    total = max(end - start, _ZERO)
    elapsed = min(max(now - start, _ZERO), total)
    remaining = max(end - now, _ZERO)

    progress = 0 if total == _ZERO else _round_half_up(elapsed / total * 100)
    total_days = 0 if total == _ZERO else math.ceil(total / _DAY)
    days_left = 0 if remaining == _ZERO else math.ceil(remaining / _DAY)

    return VersionData(
        name=raw.name,
        start_date=start,
        end_date=end,
        total_days=total_days,
        days_left=days_left,
        progress=progress,
        milestones=list(raw.milestones or []),
        branches=list(raw.branches or []),
    )


def decorate_drops(drops: Iterable[Drop], now: datetime) -> list[Drop]:
    """
    Order drops by date and assign roadmap statuses.

    The first drop dated today or later is `current`; earlier ones are
    `completed` and later ones `upcoming`. With nothing left in the future,
    every drop is `completed`. Drops whose date cannot be parsed keep their
    original status, text and position in the list.
    """

    today = start_of_day(now)
    parsed = [(drop, parse_drop_date(drop.date)) for drop in drops]
    ordered = _sort_dated_in_place(parsed)

    current_index = next(
        (idx for idx, (_, when) in enumerate(ordered) if when is not None and when >= today),
        None,
    )

    decorated: list[Drop] = []
    for idx, (drop, when) in enumerate(ordered):
        if when is None:
            logger.debug("Drop %s has unparseable date %r; leaving it as is", drop.id, drop.date)
            decorated.append(drop)
            continue
        decorated.append(replace(drop, status=_drop_status(idx, current_index), date=format_short_date(when)))
    return decorated


def decorate_team(team: Team) -> Team:
    """Fill in default name and colours and normalize every feature."""
    return Team(
        name=team.name if team.name is not None else DEFAULT_TEAM_NAME,
        icon_color=team.icon_color if team.icon_color is not None else DEFAULT_TEAM_ICON_COLOR,
        border_color=team.border_color if team.border_color is not None else DEFAULT_TEAM_BORDER_COLOR,
        features=[normalize_feature(feature) for feature in team.features or []],
    )


def normalize_feature(feature: Feature | str) -> Feature:
    if isinstance(feature, str):
        return Feature(title=feature, dev=[], qa=[])
    return Feature(
        title=feature.title,
        dev=list(feature.dev) if isinstance(feature.dev, list) else [],
        qa=list(feature.qa) if isinstance(feature.qa, list) else [],
    )


def prepare_birthdays(birthdays: Iterable[Birthday], now: datetime) -> list[Birthday]:
    """
    Return the nearest upcoming birthdays (at most two), closest first.

    Birthdays whose date cannot be understood are skipped.
    """

    today = start_of_day(now)
    decorated: list[Birthday] = []
    for birthday in birthdays:
        occurrence = next_occurrence(birthday.date, today)
        if occurrence is None:
            logger.debug("Skipping birthday for %s: unparseable date %r", birthday.name, birthday.date)
            continue
        decorated.append(
            replace(
                birthday,
                days_away=max(days_between(today, occurrence), 0),
                date=format_annual_date(occurrence),
            )
        )

    decorated.sort(key=lambda birthday: birthday.days_away)
    return decorated[:MAX_BIRTHDAYS]


def _resolve_bound(value, field_name: str) -> datetime:
    resolved = parse_instant(value)
    if resolved is None:
        raise TransformError(f"versionData.{field_name}: cannot parse date {value!r}")
    return resolved


def _sort_dated_in_place(
    parsed: list[tuple[Drop, datetime | None]],
) -> list[tuple[Drop, datetime | None]]:
    # Undated drops keep their slots; dated drops are stably sorted into the remaining ones.
    dated = iter(sorted((item for item in parsed if item[1] is not None), key=lambda item: item[1]))
    return [item if item[1] is None else next(dated) for item in parsed]


def _drop_status(index: int, current_index: int | None) -> DropStatus:
    if current_index is None or index < current_index:
        return "completed"
    if index == current_index:
        return "current"
    return "upcoming"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _round_to(value: float, decimals: int) -> float:
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor
