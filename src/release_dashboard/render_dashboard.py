from __future__ import annotations

from datetime import datetime
from importlib import metadata
from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # ensure headless, deterministic output
import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch, Polygon

from .dashboard_models import Birthday, Drop, ProcessedConfig, Team, VersionData
from .date_utils import parse_drop_date

FONT_SCALE = 1.0
TITLE_FONT = 16 * FONT_SCALE
HEADING_FONT = 12 * FONT_SCALE
LABEL_FONT = 10 * FONT_SCALE
SMALL_FONT = 8 * FONT_SCALE
FOOTER_FONT = 7 * FONT_SCALE
FIG_WIDTH = 14.0
FIG_HEIGHT = 9.0
TITLE_Y = 0.975
PROGRESS_TRACK_COLOR = "#e5e7eb"
PROGRESS_FILL_COLOR = "#4f46e5"
REMINDER_COLOR = "#f97316"
ERROR_COLOR = "#dc2626"
STATUS_COLORS = {
    "completed": "#16a34a",
    "current": "#2563eb",
    "upcoming": "#9ca3af",
}
MAX_FEATURES_SHOWN = 8


def render_dashboard(
    processed: ProcessedConfig,
    out_path: str,
    active_slide: int = 0,
    show_workout_reminder: bool = False,
    error_message: str | None = None,
    now: datetime | None = None,
) -> None:
    """
    Render a static SVG snapshot of the dashboard to `out_path`.

    - Header: release name, weeks left and a progress bar with milestone ticks.
    - Roadmap: one lozenge per drop, coloured by status.
    - The active team card and the birthday panel side by side.
    - Optional banners for the workout reminder and the last load error.
    """

    now = now or datetime.now()
    fig = plt.figure(figsize=(FIG_WIDTH, FIG_HEIGHT))
    gs = fig.add_gridspec(
        3,
        2,
        height_ratios=[1.0, 1.1, 2.2],
        width_ratios=[1.6, 1.0],
        hspace=0.35,
        wspace=0.08,
        left=0.04,
        right=0.96,
        top=0.9,
        bottom=0.06,
    )
    header_ax = fig.add_subplot(gs[0, :])
    roadmap_ax = fig.add_subplot(gs[1, :])
    team_ax = fig.add_subplot(gs[2, 0])
    birthday_ax = fig.add_subplot(gs[2, 1])

    fig.suptitle(processed.version_data.name, x=0.5, fontsize=TITLE_FONT, fontweight="bold", y=TITLE_Y)

    _draw_header(header_ax, processed.version_data, processed.weeks_left)
    _draw_roadmap(roadmap_ax, processed.drops)
    _draw_team(team_ax, processed.teams, active_slide)
    _draw_birthdays(birthday_ax, processed)

    if show_workout_reminder:
        fig.text(0.5, 0.925, "Workout time! Stretch break until 12:00", ha="center", va="center",
                 fontsize=LABEL_FONT, color="white", fontweight="bold",
                 bbox={"boxstyle": "round,pad=0.4", "facecolor": REMINDER_COLOR, "edgecolor": "none"})
    if error_message:
        fig.text(0.04, 0.015, f"Last refresh failed: {error_message}", ha="left", va="bottom",
                 fontsize=SMALL_FONT, color=ERROR_COLOR)

    footer = f"Release dashboard v{_tool_version()} · rendered {now:%Y-%m-%d %H:%M}"
    fig.text(0.99, 0.01, footer, ha="right", va="bottom", fontsize=FOOTER_FONT, alpha=0.8)

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, format="svg")
    plt.close(fig)


def _draw_header(ax: plt.Axes, version: VersionData, weeks_left: float) -> None:
    ax.set_xlim(0, 100)
    ax.set_ylim(-1.6, 1.4)
    ax.axis("off")

    summary = (
        f"{version.start_date:%d %b %Y} to {version.end_date:%d %b %Y}   ·   "
        f"{version.days_left} of {version.total_days} days left ({weeks_left:g} weeks)   ·   {version.progress}%"
    )
    ax.text(0, 1.1, summary, ha="left", va="center", fontsize=LABEL_FONT)

    ax.barh(0, width=100, left=0, height=0.6, color=PROGRESS_TRACK_COLOR, edgecolor="none")
    ax.barh(0, width=version.progress, left=0, height=0.6, color=PROGRESS_FILL_COLOR, edgecolor="none")

    for x, milestone_name in _milestone_positions(version):
        ax.plot([x, x], [-0.45, 0.45], color="black", linewidth=1.0)
        ax.text(x, -0.8, milestone_name, ha="center", va="top", fontsize=SMALL_FONT, rotation=0)

    if version.branches:
        branches = "   ".join(f"{b.title}: {b.branch} ({b.products})" for b in version.branches)
        ax.text(0, -1.5, branches, ha="left", va="center", fontsize=SMALL_FONT, alpha=0.8)


def _milestone_positions(version: VersionData) -> list[tuple[float, str]]:
    """Place milestones whose date parses inside the version window; others are left off the bar."""
    span = version.end_date - version.start_date
    if span.total_seconds() <= 0:
        return []
    positions: list[tuple[float, str]] = []
    for milestone in version.milestones:
        when = parse_drop_date(milestone.date)
        if when is None or not version.start_date <= when <= version.end_date:
            continue
        positions.append(((when - version.start_date) / span * 100, milestone.name))
    return positions


def _draw_roadmap(ax: plt.Axes, drops: list[Drop]) -> None:
    ax.axis("off")
    ax.set_ylim(-1.2, 1.2)
    ax.text(0, 1.1, "Roadmap", ha="left", va="top", fontsize=HEADING_FONT, fontweight="bold",
            transform=ax.transAxes)
    if not drops:
        ax.set_xlim(0, 1)
        ax.text(0.5, 0, "No drops planned", ha="center", va="center", fontsize=LABEL_FONT, alpha=0.6)
        return

    ax.set_xlim(-0.6, len(drops) - 0.4)
    ax.plot([0, len(drops) - 1], [0, 0], color="#d1d5db", linewidth=2.0, zorder=1)

    half_width = 0.12
    half_height = 0.3
    for idx, drop in enumerate(drops):
        color = STATUS_COLORS.get(drop.status, "#999999")
        diamond = [
            (idx - half_width, 0),
            (idx, half_height),
            (idx + half_width, 0),
            (idx, -half_height),
        ]
        ax.add_patch(Polygon(diamond, closed=True, facecolor=color, edgecolor="black", zorder=2))
        weight = "bold" if drop.status == "current" else "normal"
        ax.text(idx, 0.45, drop.name, ha="center", va="bottom", fontsize=LABEL_FONT, fontweight=weight)
        ax.text(idx, -0.45, f"{drop.date} · {drop.status}", ha="center", va="top", fontsize=SMALL_FONT,
                color=color)


def _draw_team(ax: plt.Axes, teams: list[Team], active_slide: int) -> None:
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.axis("off")
    if not teams:
        ax.text(0.5, 0.5, "No teams configured", ha="center", va="center", fontsize=LABEL_FONT, alpha=0.6)
        return

    team = teams[active_slide % len(teams)]
    ax.add_patch(
        FancyBboxPatch((0.01, 0.02), 0.98, 0.94, boxstyle="round,pad=0.01", facecolor="white",
                       edgecolor=team.border_color, linewidth=2.0)
    )
    ax.text(0.04, 0.9, team.name, ha="left", va="center", fontsize=HEADING_FONT, fontweight="bold",
            color=team.icon_color)
    ax.text(0.96, 0.9, f"{active_slide % len(teams) + 1}/{len(teams)}", ha="right", va="center",
            fontsize=SMALL_FONT, alpha=0.7)

    y = 0.78
    step = 0.7 / MAX_FEATURES_SHOWN
    for feature in team.features[:MAX_FEATURES_SHOWN]:
        ax.text(0.04, y, feature.title, ha="left", va="center", fontsize=LABEL_FONT)
        people = []
        if feature.dev:
            people.append("Dev: " + ", ".join(feature.dev))
        if feature.qa:
            people.append("QA: " + ", ".join(feature.qa))
        if people:
            ax.text(0.96, y, "   ".join(people), ha="right", va="center", fontsize=SMALL_FONT, alpha=0.8)
        y -= step
    hidden = len(team.features) - MAX_FEATURES_SHOWN
    if hidden > 0:
        ax.text(0.04, y, f"+{hidden} more", ha="left", va="center", fontsize=SMALL_FONT, alpha=0.6)


def _draw_birthdays(ax: plt.Axes, processed: ProcessedConfig) -> None:
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.axis("off")
    ax.text(0.04, 0.9, "Birthdays", ha="left", va="center", fontsize=HEADING_FONT, fontweight="bold")

    if not processed.birthdays:
        ax.text(0.04, 0.7, "No birthdays coming up", ha="left", va="center", fontsize=LABEL_FONT, alpha=0.6)
        return

    y = 0.7
    if processed.upcoming_birthday is not None:
        ax.text(0.04, y, _birthday_line(processed.upcoming_birthday), ha="left", va="center",
                fontsize=HEADING_FONT, color=REMINDER_COLOR, fontweight="bold")
        y -= 0.2
    if processed.next_birthday is not None:
        ax.text(0.04, y, "Next: " + _birthday_line(processed.next_birthday), ha="left", va="center",
                fontsize=LABEL_FONT)


def _birthday_line(birthday: Birthday) -> str:
    if birthday.days_away == 0:
        when = "today!"
    elif birthday.days_away == 1:
        when = "tomorrow"
    else:
        when = f"in {birthday.days_away} days"
    return f"{birthday.name}, {birthday.date} ({when})"


def _tool_version() -> str:
    try:
        return metadata.version("release-dashboard")
    except Exception:
        return "0.0.0"
