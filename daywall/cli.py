"""
daywall

Change the desktop wallpaper once a day with a fresh image from wallscloud.net.

This module defines the entry point to the daywall CLI. The 'daywall' command group
loads configuration and sets up console output; the subcommands are:

    run     stay in the foreground and update the wallpaper daily at the configured
            time, catching up at startup if today's update was missed
    force   update the wallpaper once, right now
    status  show when the wallpaper was last updated and when it will be next
"""

import logging
from datetime import datetime
from dataclasses import dataclass

import click
import requests

from daywall import config as daywall_config
from daywall.config import DaywallConfig
from daywall.console import (
    ConsoleNotifier,
    Notifier,
    confirm_success,
    describe,
    warn,
    setup_logging,
    silence,
)
from daywall.cli_utils import TerminalBridge, catch_errors
from daywall.pipeline import PipelineRunner
from daywall.scheduler import Scheduler, next_trigger
from daywall.state import UpdateMarker
from daywall.wallpaper_handler import get_applier

logger = logging.getLogger(__name__)


@dataclass
class DaywallContext:
    """Application data passed to subcommands through the click context."""

    config: DaywallConfig
    notifier: Notifier


def build_runner(config: DaywallConfig) -> PipelineRunner:
    marker = UpdateMarker(config.marker_path)
    return PipelineRunner(
        config=config,
        applier=get_applier(),
        marker=marker,
        session=requests.Session(),
    )


def build_scheduler(config: DaywallConfig, notifier: Notifier) -> Scheduler:
    runner = build_runner(config)
    return Scheduler(
        runner=runner,
        marker=runner.marker,
        notifier=notifier,
        hour=config.trigger_hour,
        minute=config.trigger_minute,
    )


@click.group()
@click.pass_context
@click.option(
    "--verbose",
    "verbosity",
    flag_value="verbose",
    help="Print debug logging in addition to normal output.",
)
@click.option(
    "--quiet",
    "verbosity",
    flag_value="quiet",
    help="Silence all output printed to the terminal except errors in the log.",
)
@click.version_option(package_name="daywall")
@catch_errors
def cli(ctx: click.Context, verbosity):
    """
    daywall

    Change your desktop wallpaper every day with a random image from wallscloud.net.

    ====================
    Quickstart
    ====================

    Keep running and update the wallpaper every day at 09:00:

        $ daywall run

    Change the wallpaper right now:

        $ daywall force

    While 'run' is active, type 'force' to change the wallpaper immediately or 'exit'
    to quit. On Linux, 'kill -USR1 <pid>' also forces an update.
    """

    verbosity = verbosity or "normal"
    setup_logging(verbosity)

    if verbosity == "quiet":
        silence()

    ctx.obj = DaywallContext(config=daywall_config.init(), notifier=ConsoleNotifier())


@cli.command()
@click.pass_obj
@catch_errors
def run(obj: DaywallContext):
    """
    Update the wallpaper daily at the configured time until told to exit.
    """

    config = obj.config
    scheduler = build_scheduler(config, obj.notifier)
    bridge = TerminalBridge(on_force=scheduler.force)

    describe(
        f":alarm_clock-emoji: daywall will update your wallpaper daily at "
        f"{config.trigger_hour:02d}:{config.trigger_minute:02d}. "
        "Type 'force' to update now or 'exit' to quit."
    )

    bridge.install_signal_handlers()
    try:
        scheduler.start()
        bridge.wait()

    finally:
        describe(":wave-emoji: stopping daywall ...")
        scheduler.stop()
        bridge.restore_signal_handlers()


@cli.command()
@click.pass_obj
@catch_errors
def force(obj: DaywallContext):
    """
    Update the wallpaper once, right now.
    """

    runner = build_runner(obj.config)
    describe(f":earth_asia-emoji: getting a new wallpaper from {obj.config.listing_url} ...")

    result = runner.run_once()
    obj.notifier.notify(result.title, result.message)

    if not result.ok:
        raise SystemExit(1)


@cli.command()
@click.pass_obj
@catch_errors
def status(obj: DaywallContext):
    """
    Show when the wallpaper was last updated and when the next update is due.
    """

    config = obj.config
    marker = UpdateMarker(config.marker_path)
    last = marker.last_updated()

    describe(f"application directory: {config.app_dir}")
    describe(f"last update: {last.isoformat() if last else 'never'}")

    if marker.was_updated_today():
        confirm_success(":white_check_mark-emoji: today's wallpaper is set")
    else:
        warn("today's wallpaper has not been set yet")

    moment = next_trigger(datetime.now(), config.trigger_hour, config.trigger_minute)
    describe(f"next scheduled update: {moment:%Y-%m-%d %H:%M}")


def main():
    cli(prog_name="daywall")


if __name__ == "__main__":
    main()
