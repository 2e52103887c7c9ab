import copy
import datetime as dt

import pytest

from release_dashboard.dashboard_models import Feature
from release_dashboard.errors import ConfigValidationError
from release_dashboard.parse_config import load_config_file, validate_config

VALID_CONFIG = {
    "versionData": {
        "name": "FY26 Q3",
        "startDate": "2025-12-21",
        "endDate": "2026-03-01",
    },
    "drops": [
        {"id": 1, "name": "Drop 1", "date": "15.01.26", "status": "completed"},
    ],
    "teams": [
        {"name": "Team A", "features": [{"title": "Feature 1"}]},
    ],
    "birthdays": [
        {"name": "Alice", "date": "25/09", "image": "alice.jpg"},
    ],
}


def _config(**overrides):
    data = copy.deepcopy(VALID_CONFIG)
    data.update(overrides)
    return data


def test_valid_config_is_parsed_with_defaults():
    config = validate_config(_config())

    assert config.version_data.name == "FY26 Q3"
    assert config.version_data.start_date == "2025-12-21"
    assert config.version_data.total_days == 0
    assert config.version_data.days_left == 0
    assert config.version_data.progress == 0
    assert config.version_data.milestones == []
    assert config.version_data.branches == []
    assert config.drops[0].status == "completed"
    assert config.teams[0].features == [Feature(title="Feature 1", dev=[], qa=[])]
    assert config.teams[0].icon_color is None
    assert config.birthdays[0].days_away == 0


def test_drop_status_defaults_to_upcoming():
    config = validate_config(_config(drops=[{"id": 7, "name": "Next", "date": "01.02.26"}]))
    assert config.drops[0].status == "upcoming"


def test_unknown_drop_status_is_rejected():
    with pytest.raises(ConfigValidationError, match=r"drops\[0\]\.status"):
        validate_config(_config(drops=[{"id": 1, "name": "D", "date": "01.02.26", "status": "shipped"}]))


def test_missing_top_level_field():
    data = _config()
    del data["birthdays"]
    with pytest.raises(ConfigValidationError, match="birthdays"):
        validate_config(data)


def test_invalid_shape_is_rejected():
    with pytest.raises(ConfigValidationError, match="versionData"):
        validate_config({"invalid": True})


@pytest.mark.parametrize("value", [None, [], "config", 3])
def test_non_mapping_document_is_rejected(value):
    with pytest.raises(ConfigValidationError, match="root"):
        validate_config(value)


@pytest.mark.parametrize(
    "overrides, path",
    [
        ({"drops": [{"id": "1", "name": "D", "date": "x"}]}, r"drops\[0\]\.id"),
        ({"drops": [{"id": True, "name": "D", "date": "x"}]}, r"drops\[0\]\.id"),
        ({"drops": [{"id": 1.5, "name": "D", "date": "x"}]}, r"drops\[0\]\.id"),
        ({"drops": [{"id": 1, "name": "D", "date": 15}]}, r"drops\[0\]\.date"),
        ({"teams": [{"iconColor": "#fff"}]}, r"teams\[0\]"),
        ({"teams": [{"name": "T", "features": [42]}]}, r"teams\[0\]\.features\[0\]"),
        ({"teams": [{"name": "T", "features": [{"title": "F", "dev": "Ana"}]}]}, r"features\[0\]\.dev"),
        ({"teams": [{"name": "T", "features": [{"title": "F", "qa": ["Ben", 3]}]}]}, r"qa\[1\]"),
        ({"birthdays": [{"name": "A", "date": "25/09"}]}, r"birthdays\[0\]"),
        ({"birthdays": [{"name": "A", "date": "25/09", "image": "a.jpg", "daysAway": "soon"}]}, "daysAway"),
        ({"drops": {"id": 1}}, "drops"),
        ({"drops": [{"id": float("nan"), "name": "D", "date": "x"}]}, r"drops\[0\]\.id: expected finite number"),
        ({"drops": [{"id": float("inf"), "name": "D", "date": "x"}]}, r"drops\[0\]\.id: expected finite number"),
        (
            {"birthdays": [{"name": "A", "date": "25/09", "image": "a.jpg", "daysAway": float("nan")}]},
            r"birthdays\[0\]\.daysAway: expected finite number",
        ),
        (
            {"birthdays": [{"name": "A", "date": "25/09", "image": "a.jpg", "daysAway": float("-inf")}]},
            r"birthdays\[0\]\.daysAway: expected finite number",
        ),
    ],
)
def test_field_violations_name_the_path(overrides, path):
    with pytest.raises(ConfigValidationError, match=path):
        validate_config(_config(**overrides))


def test_version_data_field_violations():
    with pytest.raises(ConfigValidationError, match=r"versionData\.startDate"):
        validate_config(_config(versionData={"name": "V", "startDate": 20251221, "endDate": "2026-03-01"}))
    with pytest.raises(ConfigValidationError, match=r"versionData\.progress"):
        validate_config(
            _config(versionData={"name": "V", "startDate": "a", "endDate": "b", "progress": "half"})
        )
    with pytest.raises(ConfigValidationError, match=r"milestones\[0\]"):
        validate_config(
            _config(versionData={"name": "V", "startDate": "a", "endDate": "b", "milestones": [{"name": "M"}]})
        )


def test_version_dates_may_be_date_objects():
    config = validate_config(
        _config(versionData={"name": "V", "startDate": dt.date(2025, 12, 21), "endDate": dt.date(2026, 3, 1)})
    )
    assert config.version_data.start_date == dt.date(2025, 12, 21)


def test_feature_strings_and_extra_keys_pass_through():
    config = validate_config(
        _config(
            teams=[{"name": "T", "features": ["Bare", {"title": "Full", "dev": ["Ana"], "qa": []}], "extra": 1}]
        )
    )
    assert config.teams[0].features == ["Bare", Feature(title="Full", dev=["Ana"], qa=[])]


def test_branches_and_milestones_are_parsed():
    config = validate_config(
        _config(
            versionData={
                "name": "V",
                "startDate": "2025-12-21",
                "endDate": "2026-03-01",
                "milestones": [{"name": "Freeze", "date": "15.02.26"}],
                "branches": [{"title": "Release", "branch": "release/v1", "products": "Web"}],
            }
        )
    )
    assert config.version_data.milestones[0].name == "Freeze"
    assert config.version_data.branches[0].branch == "release/v1"


def test_load_config_file_reads_yaml_keeping_dates_as_text(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """
versionData:
  name: FY26 Q3
  startDate: 2025-12-21
  endDate: 2026-03-01
drops: []
teams: []
birthdays:
  - name: Carol
    date: 2000-06-15
    image: carol.jpg
""",
        encoding="utf-8",
    )

    config = load_config_file(path)

    assert config.version_data.start_date == "2025-12-21"
    assert config.birthdays[0].date == "2000-06-15"


def test_load_config_file_reads_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(
        '{"versionData": {"name": "V", "startDate": "2025-12-21", "endDate": "2026-03-01"},'
        ' "drops": [], "teams": [], "birthdays": []}',
        encoding="utf-8",
    )

    assert load_config_file(path).version_data.name == "V"


def test_load_config_file_rejects_yaml_nan(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "versionData: {name: V, startDate: '2025-12-21', endDate: '2026-03-01'}\n"
        "drops:\n  - {id: .nan, name: D, date: '15.01.26'}\n"
        "teams: []\nbirthdays: []\n",
        encoding="utf-8",
    )

    with pytest.raises(ConfigValidationError, match=r"drops\[0\]\.id: expected finite number"):
        load_config_file(path)


@pytest.mark.parametrize(
    "content",
    [
        b"versionData: [unclosed\n",
        b'{"versionData": {"name": "V",\n',
        b"versionData:\n  name: \xff\xfe\n",
    ],
)
def test_load_config_file_unparseable_document_is_a_validation_error(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_bytes(content)

    with pytest.raises(ConfigValidationError, match="root: cannot parse"):
        load_config_file(path)
