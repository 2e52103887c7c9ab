from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import webbrowser
from datetime import datetime
from pathlib import Path

from .config_source import ConfigSource
from .dashboard import Dashboard
from .dashboard_data import process_config
from .dashboard_models import AppConfig
from .date_utils import parse_instant
from .errors import ConfigValidationError, FetchError, TransformError
from .render_dashboard import render_dashboard
from .settings import DashboardSettings, load_settings
from .timers import NamedScheduler, is_workout_reminder_time

logger = logging.getLogger("release_dashboard")


def _parse_now(value: str) -> datetime:
    parsed = parse_instant(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected something like 2026-01-15T09:30")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-dashboard",
        description="Release dashboard",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--log-level", help="Logging level; defaults to DASHBOARD_LOG_LEVEL or INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Load the config once and write an SVG snapshot")
    render.add_argument("source", nargs="?", help="Config path or URL; defaults to DASHBOARD_CONFIG_URL")
    render.add_argument("--out", default="output/dashboard.svg", help="Output SVG path")
    render.add_argument("--now", type=_parse_now, help="Evaluate the dashboard at this instant instead of now")
    render.add_argument(
        "--view",
        dest="view",
        action="store_true",
        default=False,
        help="Best-effort open the output file after rendering",
    )
    render.add_argument("--no-view", dest="view", action="store_false", help="Do not open the output file")

    watch = sub.add_parser("watch", help="Keep the snapshot up to date with rotation, reminders and midnight reloads")
    watch.add_argument("source", nargs="?", help="Config path or URL; defaults to DASHBOARD_CONFIG_URL")
    watch.add_argument("--out", default="output/dashboard.svg", help="Output SVG path")
    watch.add_argument("--mobile", action="store_true", help="Use the handset slide rotation period")
    watch.add_argument("--duration", type=float, help="Stop after this many seconds (runs until interrupted if omitted)")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "render":
        return _render(args, settings)
    try:
        return asyncio.run(_watch(args, settings))
    except KeyboardInterrupt:
        return 0


def _render(args: argparse.Namespace, settings: DashboardSettings) -> int:
    source = ConfigSource.from_settings(settings, location=args.source)
    now = args.now or datetime.now()

    try:
        config = asyncio.run(_load_once(source))
    except (FetchError, ConfigValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # Unexpected
        print(f"Unexpected error while loading config: {exc}", file=sys.stderr)
        return 1

    try:
        processed = process_config(config, now)
    except TransformError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        render_dashboard(
            processed,
            out_path=args.out,
            show_workout_reminder=is_workout_reminder_time(now),
            now=now,
        )
    except Exception as exc:
        print(f"Unexpected error while rendering: {exc}", file=sys.stderr)
        return 1

    logger.info("Wrote %s", args.out)
    if args.view:
        try:
            webbrowser.open(Path(args.out).resolve().as_uri())
        except Exception:
            pass
    return 0


async def _load_once(source: ConfigSource) -> AppConfig:
    try:
        return await source.get_config()
    finally:
        await source.aclose()


async def _watch(args: argparse.Namespace, settings: DashboardSettings) -> int:
    source = ConfigSource.from_settings(settings, location=args.source)
    scheduler = NamedScheduler()

    def on_change(dashboard: Dashboard) -> None:
        if dashboard.processed is None:
            return
        render_dashboard(
            dashboard.processed,
            out_path=args.out,
            active_slide=dashboard.active_slide,
            show_workout_reminder=dashboard.show_workout_reminder,
            error_message=dashboard.error_message if dashboard.has_error else None,
        )

    dashboard = Dashboard(source, scheduler, settings, on_change=on_change)
    try:
        await dashboard.start()
        if args.mobile:
            dashboard.set_mobile(True)
        if args.duration is not None:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()
    finally:
        await dashboard.aclose()
    return 2 if dashboard.has_error and dashboard.processed is None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
