import datetime as dt

from release_dashboard.dashboard_data import process_config
from release_dashboard.dashboard_models import AppConfig, Birthday, BranchInfo, Drop, Feature, Milestone, RawVersionData, Team
from release_dashboard.render_dashboard import _birthday_line, _milestone_positions, render_dashboard

NOW = dt.datetime(2026, 1, 14, 11, 50)


def _processed(**kwargs):
    defaults = dict(
        version_data=RawVersionData(
            name="FY26 Q3",
            start_date="2025-12-21",
            end_date="2026-03-01",
            milestones=[Milestone(name="Code freeze", date="15.02.26"), Milestone(name="Later", date="TBD")],
            branches=[BranchInfo(title="Release", branch="release/fy26-q3", products="Web")],
        ),
        drops=[
            Drop(id=1, name="Drop 1", date="07.01.26"),
            Drop(id=2, name="Drop 2", date="21.01.26"),
            Drop(id=3, name="Hardening", date="TBD"),
        ],
        teams=[
            Team(name="Payments", features=["Refund flow", Feature(title="Wallet", dev=["Ana"], qa=["Ben"])]),
            Team(name="Growth", features=[f"Feature {i}" for i in range(12)]),
        ],
        birthdays=[
            Birthday(name="Alice", date="16/01", image="alice.jpg"),
            Birthday(name="Bob", date="March 3rd", image="bob.jpg"),
        ],
    )
    defaults.update(kwargs)
    return process_config(AppConfig(**defaults), NOW)


def test_render_writes_svg(tmp_path):
    out = tmp_path / "nested" / "dashboard.svg"

    render_dashboard(_processed(), str(out), now=NOW)

    text = out.read_text(encoding="utf-8")
    assert text.lstrip().startswith("<?xml")
    assert "<svg" in text


def test_render_with_banners_and_later_slide(tmp_path):
    out = tmp_path / "dashboard.svg"

    render_dashboard(
        _processed(),
        str(out),
        active_slide=3,
        show_workout_reminder=True,
        error_message="Failed to fetch config.json after 3 attempts",
        now=NOW,
    )

    assert out.stat().st_size > 0


def test_render_empty_sections(tmp_path):
    out = tmp_path / "empty.svg"

    render_dashboard(_processed(drops=[], teams=[], birthdays=[]), str(out), now=NOW)

    assert out.stat().st_size > 0


def test_milestones_outside_window_or_unparseable_are_skipped():
    version = _processed().version_data

    positions = _milestone_positions(version)

    assert [name for _, name in positions] == ["Code freeze"]
    assert 0 < positions[0][0] < 100


def test_birthday_line_wording():
    assert _birthday_line(Birthday(name="A", date="JANUARY 14", image="", days_away=0)) == "A, JANUARY 14 (today!)"
    assert _birthday_line(Birthday(name="A", date="JANUARY 15", image="", days_away=1)) == "A, JANUARY 15 (tomorrow)"
    assert _birthday_line(Birthday(name="A", date="JANUARY 20", image="", days_away=6)) == "A, JANUARY 20 (in 6 days)"
