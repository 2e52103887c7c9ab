from __future__ import annotations

import datetime as _dt
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .dashboard_models import (
    DROP_STATUSES,
    AppConfig,
    Birthday,
    BranchInfo,
    DateInput,
    Drop,
    Feature,
    Milestone,
    RawVersionData,
    Team,
)
from .errors import ConfigValidationError


@dataclass(frozen=True)
class _Path:
    """Helper to produce readable document path strings like drops[0].status."""

    parts: tuple[str, ...] = ()

    def child(self, segment: str) -> "_Path":
        return _Path(self.parts + (segment,))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return ".".join(self.parts) if self.parts else "root"


class _ConfigLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as plain strings so date parsing stays in one place."""


_ConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def read_document(path: str | Path) -> Any:
    """
    Read a YAML or JSON config document from disk without validating it.

    Malformed YAML/JSON and undecodable bytes raise ConfigValidationError;
    I/O failures propagate as OSError.
    """

    with open(path, "r", encoding="utf-8") as fh:
        try:
            return yaml.load(fh, Loader=_ConfigLoader)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise ConfigValidationError(f"root: cannot parse {path}: {exc}") from exc


def load_config_file(path: str | Path) -> AppConfig:
    """Load and validate a config document from disk."""

    return validate_config(read_document(path))


def validate_config(data: Any) -> AppConfig:
    """
    Validate an untyped config document and return a typed, defaulted AppConfig.

    Raises ConfigValidationError naming the offending field path on the first
    missing field, wrong type or unknown drop status.
    """

    path = _Path()
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping at top level")

    version_raw = _require_value(data, "versionData", path)
    version_data = _parse_version_data(version_raw, path.child("versionData"))

    drops_raw = _require_list(data, "drops", path)
    drops = [_parse_drop(raw, path.child(f"drops[{idx}]")) for idx, raw in enumerate(drops_raw)]

    teams_raw = _require_list(data, "teams", path)
    teams = [_parse_team(raw, path.child(f"teams[{idx}]")) for idx, raw in enumerate(teams_raw)]

    birthdays_raw = _require_list(data, "birthdays", path)
    birthdays = [_parse_birthday(raw, path.child(f"birthdays[{idx}]")) for idx, raw in enumerate(birthdays_raw)]

    return AppConfig(version_data=version_data, drops=drops, teams=teams, birthdays=birthdays)


def _parse_version_data(data: Any, path: _Path) -> RawVersionData:
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping for versionData")

    milestones_raw = _optional_list(data, "milestones", path)
    branches_raw = _optional_list(data, "branches", path)

    return RawVersionData(
        name=_require_str(data, "name", path),
        start_date=_require_date_input(data, "startDate", path),
        end_date=_require_date_input(data, "endDate", path),
        total_days=_optional_number(data, "totalDays", path),
        days_left=_optional_number(data, "daysLeft", path),
        progress=_optional_number(data, "progress", path),
        milestones=[_parse_milestone(raw, path.child(f"milestones[{idx}]")) for idx, raw in enumerate(milestones_raw)],
        branches=[_parse_branch(raw, path.child(f"branches[{idx}]")) for idx, raw in enumerate(branches_raw)],
    )


def _parse_milestone(data: Any, path: _Path) -> Milestone:
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping for milestone")
    return Milestone(name=_require_str(data, "name", path), date=_require_str(data, "date", path))


def _parse_branch(data: Any, path: _Path) -> BranchInfo:
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping for branch")
    return BranchInfo(
        title=_require_str(data, "title", path),
        branch=_require_str(data, "branch", path),
        products=_require_str(data, "products", path),
    )


def _parse_drop(data: Any, path: _Path) -> Drop:
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping for drop")

    drop_id = _require_number(data, "id", path)
    if not float(drop_id).is_integer():
        raise ConfigValidationError(f"{path.child('id')}: expected integer")

    status = data.get("status")
    if status is None:
        status = "upcoming"
    elif status not in DROP_STATUSES:
        raise ConfigValidationError(f"{path.child('status')}: expected one of {list(DROP_STATUSES)}, got {status!r}")

    return Drop(
        id=int(drop_id),
        name=_require_str(data, "name", path),
        date=_require_str(data, "date", path),
        status=status,
    )


def _parse_team(data: Any, path: _Path) -> Team:
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping for team")

    features_raw = _optional_list(data, "features", path)
    features = [_parse_feature(raw, path.child(f"features[{idx}]")) for idx, raw in enumerate(features_raw)]

    return Team(
        name=_require_str(data, "name", path),
        icon_color=_optional_str(data, "iconColor", path),
        border_color=_optional_str(data, "borderColor", path),
        features=features,
    )


def _parse_feature(data: Any, path: _Path) -> Feature | str:
    if isinstance(data, str):
        return data
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected string or mapping for feature")
    return Feature(
        title=_require_str(data, "title", path),
        dev=_optional_str_list(data, "dev", path),
        qa=_optional_str_list(data, "qa", path),
    )


def _parse_birthday(data: Any, path: _Path) -> Birthday:
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected mapping for birthday")

    days_away = _optional_number(data, "daysAway", path)
    return Birthday(
        name=_require_str(data, "name", path),
        date=_require_str(data, "date", path),
        image=_require_str(data, "image", path),
        days_away=int(days_away),
    )


def _require_value(data: dict[str, Any], key: str, path: _Path) -> Any:
    if key not in data or data[key] is None:
        raise ConfigValidationError(f"{path}: missing required field '{key}'")
    return data[key]


def _require_str(data: dict[str, Any], key: str, path: _Path) -> str:
    value = _require_value(data, key, path)
    if not isinstance(value, str):
        raise ConfigValidationError(f"{path.child(key)}: expected string")
    return value


def _optional_str(data: dict[str, Any], key: str, path: _Path) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigValidationError(f"{path.child(key)}: expected string")
    return value


def _require_number(data: dict[str, Any], key: str, path: _Path) -> int | float:
    value = _require_value(data, key, path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{path.child(key)}: expected number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ConfigValidationError(f"{path.child(key)}: expected finite number")
    return value


def _optional_number(data: dict[str, Any], key: str, path: _Path) -> int | float:
    if data.get(key) is None:
        return 0
    return _require_number(data, key, path)


def _require_list(data: dict[str, Any], key: str, path: _Path) -> list[Any]:
    value = _require_value(data, key, path)
    if not isinstance(value, list):
        raise ConfigValidationError(f"{path.child(key)}: expected list")
    return value


def _optional_list(data: dict[str, Any], key: str, path: _Path) -> list[Any]:
    if data.get(key) is None:
        return []
    return _require_list(data, key, path)


def _optional_str_list(data: dict[str, Any], key: str, path: _Path) -> list[str]:
    values = _optional_list(data, key, path)
    for idx, value in enumerate(values):
        if not isinstance(value, str):
            raise ConfigValidationError(f"{path.child(f'{key}[{idx}]')}: expected string")
    return list(values)


def _require_date_input(data: dict[str, Any], key: str, path: _Path) -> DateInput:
    value = _require_value(data, key, path)
    if not isinstance(value, (str, _dt.date)):
        raise ConfigValidationError(f"{path.child(key)}: expected date string or date")
    return value
