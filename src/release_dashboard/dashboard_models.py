from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal


DropStatus = Literal["completed", "current", "upcoming"]
"""Roadmap states: already shipped, the next drop due, and everything after it."""

DROP_STATUSES: tuple[str, ...] = ("completed", "current", "upcoming")

DateInput = str | date | datetime
"""Version window bounds as they appear in the document: ISO-ish text or a parsed date."""


@dataclass(frozen=True)
class Milestone:
    """Free-form milestone label shown under the release progress bar."""

    name: str
    date: str


@dataclass(frozen=True)
class BranchInfo:
    """Static description of a release branch and the products cut from it."""

    title: str
    branch: str
    products: str


@dataclass(frozen=True)
class Feature:
    """Feature owned by a team, with the developers and testers working on it."""

    title: str
    dev: list[str] = field(default_factory=list)
    qa: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RawVersionData:
    """Release window exactly as validated from the config document."""

    name: str
    start_date: DateInput
    end_date: DateInput
    total_days: float = 0
    days_left: float = 0
    progress: float = 0
    milestones: list[Milestone] = field(default_factory=list)
    branches: list[BranchInfo] = field(default_factory=list)


@dataclass(frozen=True)
class VersionData:
    """Release window resolved to instants, with derived timeline progress."""

    name: str
    start_date: datetime
    end_date: datetime
    total_days: int
    days_left: int
    progress: int
    milestones: list[Milestone] = field(default_factory=list)
    branches: list[BranchInfo] = field(default_factory=list)


@dataclass(frozen=True)
class Drop:
    """Roadmap entry; `date` is free text before decoration and `15 Jan` style after."""

    id: int
    name: str
    date: str
    status: DropStatus = "upcoming"


@dataclass(frozen=True)
class Team:
    """
    Team card shown in the carousel.

    `features` may hold bare strings until the team is decorated; after
    decoration every entry is a `Feature`.
    """

    name: str | None = None
    icon_color: str | None = None
    border_color: str | None = None
    features: list[Feature | str] = field(default_factory=list)


@dataclass(frozen=True)
class Birthday:
    """Team-member birthday; decorated entries carry the next occurrence and its distance."""

    name: str
    date: str
    image: str
    days_away: int = 0


@dataclass(frozen=True)
class AppConfig:
    """Validated config document."""

    version_data: RawVersionData
    drops: list[Drop] = field(default_factory=list)
    teams: list[Team] = field(default_factory=list)
    birthdays: list[Birthday] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessedConfig:
    """
    Display-ready view model built from one config load.

    Every load produces a new instance; nothing in here is mutated after
    construction.
    """

    version_data: VersionData
    weeks_left: float
    drops: list[Drop] = field(default_factory=list)
    teams: list[Team] = field(default_factory=list)
    birthdays: list[Birthday] = field(default_factory=list)
    upcoming_birthday: Birthday | None = None
    next_birthday: Birthday | None = None
    has_upcoming_birthday: bool = False
