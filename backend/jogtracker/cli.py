"""
CLI interface for the jogging tracker.

Usage:
    python -m jogtracker replay fixes.json
    python -m jogtracker replay fixes.json --pause-after 10 --pause-ms 60000
    python -m jogtracker history --days 7
    python -m jogtracker recover
    python -m jogtracker export
"""

import json
import sys

import click

from jogtracker.config import settings
from jogtracker.main import build_service, build_store, setup_logging
from jogtracker.shared.clock import ManualClock, now_ms
from jogtracker.shared.formatters import (
    format_distance,
    format_duration,
    format_last_save_time,
    format_pace,
    format_speed,
    format_timestamp,
)
from jogtracker.features.location import PermissionMonitor, PermissionState, ReplayLocationFeed
from jogtracker.features.tracking.calculators import derive, overall_stats, recent_sessions

# Windows console encoding fix
if sys.platform == 'win32':
    sys.stdout.reconfigure(encoding='utf-8')


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """Jogging tracker tools."""
    if log_level:
        settings.log_level = log_level.upper()
    setup_logging(settings)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--pause-after", default=None, type=int, help="Pause after N fixes")
@click.option("--pause-ms", default=60_000, type=int, help="Pause length in ms")
def replay(path, pause_after, pause_ms):
    """
    Run a recorded list of fixes through a full session.

    The clock follows fix timestamps; the session ends at the last fix.
    """
    try:
        feed = ReplayLocationFeed.from_file(path)
    except ValueError as e:
        raise click.ClickException(str(e))

    first = feed.peek()
    if first is None:
        raise click.ClickException(f"{path}: no fixes")

    clock = ManualClock(first.timestamp_ms)
    service = build_service(
        settings,
        clock=clock,
        permission=PermissionMonitor(PermissionState.GRANTED),
        feed=feed,
    )
    if service.recover().restored:
        service.shutdown()
        raise click.ClickException("A session is in progress; inspect it with `recover` first")
    service.start()

    delivered = 0
    shift = 0
    while (fix := feed.peek()) is not None:
        clock.set(fix.timestamp_ms + shift)
        feed.deliver()
        delivered += 1

        if pause_after is not None and delivered == pause_after:
            service.pause()
            clock.advance(pause_ms)
            shift += pause_ms
            service.resume()
            click.echo(f"Paused for {format_duration(pause_ms)} after {delivered} fixes")

    session = service.complete()
    service.shutdown()

    click.echo(f"Session {session.id}")
    click.echo(f"  Fixes:    {len(session.positions)}")
    click.echo(f"  Distance: {format_distance(session.distance_meters)}")
    click.echo(f"  Duration: {format_duration(session.duration_ms)}")
    click.echo(f"  Pace:     {format_pace(session.avg_pace_min_per_km)} /km")
    click.echo(f"  Speed:    {format_speed(derive(session.distance_meters, session.duration_ms).speed_kmh)}")
    click.echo(f"  Saved:    {service.save_status.value} "
               f"({format_last_save_time(service.last_save_time_ms, clock())})")


@cli.command()
@click.option("--days", default=None, type=int, help="Only sessions from the last N days")
def history(days):
    """List stored sessions with overall stats."""
    sessions = build_store(settings).load_sessions()
    if days is not None:
        sessions = recent_sessions(sessions, days)

    if not sessions:
        click.echo("No sessions")
        return

    click.echo(f"{'Started':<17} {'Distance':>10} {'Duration':>10} {'Pace':>7}")
    click.echo("-" * 47)
    for s in sessions:
        click.echo(
            f"{format_timestamp(s.start_time_ms):<17} "
            f"{format_distance(s.distance_meters):>10} "
            f"{format_duration(s.duration_ms):>10} "
            f"{format_pace(s.avg_pace_min_per_km):>7}"
        )

    totals = overall_stats(sessions)
    click.echo("-" * 47)
    click.echo(
        f"{totals.total_sessions} sessions, {format_distance(totals.total_distance_meters)}, "
        f"{format_duration(totals.total_duration_ms)}, "
        f"avg pace {format_pace(totals.avg_pace_min_per_km)}"
    )


@cli.command()
def recover():
    """Show what startup recovery would restore."""
    service = build_service(settings)
    result = service.recover()
    if not result.restored:
        click.echo("Nothing to restore")
    else:
        click.echo(result.notice)
        stats = service.live_stats(now_ms())
        click.echo(f"  State:    {service.state.value}")
        click.echo(f"  Distance: {format_distance(stats.distance_meters)}")
        click.echo(f"  Duration: {format_duration(stats.duration_ms)}")
    service.shutdown()


@cli.command()
def export():
    """Dump every stored record as JSON."""
    store = build_store(settings)
    info = store.storage_info()
    click.echo(json.dumps(store.export_json(), indent=2))
    click.echo(f"Storage used: {info.used} bytes ({info.percentage:.1f}%)", err=True)


if __name__ == "__main__":
    cli()
