from __future__ import annotations

DAY_IN_MS = 24 * 60 * 60 * 1000

UPCOMING_BIRTHDAY_WINDOW_DAYS = 7
MAX_BIRTHDAYS = 2

DEFAULT_TEAM_NAME = "Unnamed Team"
DEFAULT_TEAM_ICON_COLOR = "#6366f1"
DEFAULT_TEAM_BORDER_COLOR = "#e0e7ff"

# Python weekday numbers: Monday == 0, Sunday == 6. The reminder runs Sunday to Thursday.
WORKOUT_WEEKDAYS = (6, 0, 1, 2, 3)
WORKOUT_START_MINUTES = 11 * 60 + 45
WORKOUT_END_MINUTES = 12 * 60

TIMER_ROTATE = "carousel-rotation"
TIMER_WORKOUT = "workout-reminder"
TIMER_CONFIG_TIMEOUT = "config-refresh-timeout"
TIMER_CONFIG_INTERVAL = "config-refresh-interval"
