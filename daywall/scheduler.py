"""
Daily Scheduler

Drive the wallpaper pipeline once a day at a fixed local time.

The scheduler has one long-lived thread running the timer loop. The next trigger
moment is recomputed from the wall clock after every run, so time spent sleeping or
running the pipeline never accumulates into drift. Waiting is done on a
threading.Event: stop() sets it, which ends the wait at once and makes the loop exit
without starting another run. A run already in progress is never interrupted; it
finishes (and cleans up its temporary file) on its own.

Force requests do not go through the timer loop at all. Each one gets its own
thread, so a force run and a scheduled run can overlap. They share nothing but the
output file and the marker, both of which are written whole, so whichever finishes
last wins.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from daywall.console import Notifier
from daywall.pipeline import PipelineResult, PipelineRunner
from daywall.state import UpdateMarker

logger = logging.getLogger(__name__)


def trigger_for_day(now: datetime, hour: int, minute: int) -> datetime:
    """Return the trigger moment on the same calendar day as now."""

    return now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def next_trigger(now: datetime, hour: int, minute: int) -> datetime:
    """
    Return the first trigger moment strictly after now. If today's trigger has
    already been reached, that is the same time tomorrow.
    """

    moment = trigger_for_day(now, hour, minute)
    if now >= moment:
        # calendar day plus one, not +24h: the wall-clock time stays fixed across DST
        tomorrow = now.date() + timedelta(days=1)
        moment = moment.replace(year=tomorrow.year, month=tomorrow.month, day=tomorrow.day)
    return moment


def seconds_until(moment: datetime, now: datetime) -> float:
    """
    Real seconds from now until moment. Both are naive local times; timestamp()
    converts each with the UTC offset in force at that moment, so a DST change
    between the two is counted.
    """

    return moment.timestamp() - now.timestamp()


class Scheduler:
    def __init__(
        self,
        runner: PipelineRunner,
        marker: UpdateMarker,
        notifier: Notifier,
        hour: int = 9,
        minute: int = 0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.runner = runner
        self.marker = marker
        self.notifier = notifier
        self.hour = hour
        self.minute = minute
        self.clock = clock

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._in_flight = 0
        self._in_flight_lock = threading.Lock()

    @property
    def running(self) -> bool:
        """True while at least one pipeline run (scheduled or forced) is in progress."""

        with self._in_flight_lock:
            return self._in_flight > 0

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def next_trigger(self) -> datetime:
        return next_trigger(self.clock(), self.hour, self.minute)

    def run_pipeline(self, reason: str) -> PipelineResult:
        """Run the pipeline once and report the outcome to the notifier."""

        logger.info("starting wallpaper update (%s)", reason)
        with self._in_flight_lock:
            self._in_flight += 1

        try:
            result = self.runner.run_once()
        finally:
            with self._in_flight_lock:
                self._in_flight -= 1

        self.notifier.notify(result.title, result.message)
        return result

    def run_guarded(self, reason: str) -> Optional[PipelineResult]:
        """
        run_pipeline() for the background threads. An error that escapes the pipeline
        ends this run only; it is logged and notified, and the caller carries on.
        """

        try:
            return self.run_pipeline(reason)

        except Exception as error:
            logger.exception("wallpaper update (%s) stopped by an unexpected error", reason)
            self.notifier.notify("Error", str(error))
            return None

    def catch_up(self) -> bool:
        """
        Run the pipeline immediately if today's trigger moment has already passed and
        today's update has not been done yet. Returns True if a run happened. The
        result of the run does not matter here; it has already been notified.
        """

        now = self.clock()
        if now < trigger_for_day(now, self.hour, self.minute):
            return False

        if self.marker.was_updated_today():
            logger.info("wallpaper already updated today, no catch-up needed")
            return False

        self.run_guarded("catch-up")
        return True

    def run_forever(self) -> None:
        """
        The timer loop. Returns once stop() has been called.
        """

        self.catch_up()

        while not self._stop.is_set():
            moment = self.next_trigger()
            delay = seconds_until(moment, self.clock())
            logger.info("next wallpaper update at %s", moment.strftime("%Y-%m-%d %H:%M"))

            if self._stop.wait(timeout=max(delay, 0)):
                break

            # woke early, or the clock was set back while waiting
            if self.clock() < moment:
                continue

            # a force run may already have done today's update
            if self.marker.was_updated_today():
                logger.info("wallpaper already updated today, skipping scheduled run")
                continue

            self.run_guarded("scheduled")

        logger.debug("scheduler loop stopped")

    def start(self) -> threading.Thread:
        """Start the timer loop on a daemon thread."""

        if self._thread is not None and self._thread.is_alive():
            return self._thread

        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="daywall-scheduler", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Cancel the timer wait and wait for the loop to exit. A pipeline run in
        progress on the timer thread is allowed to finish first.
        """

        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def force(self) -> threading.Thread:
        """Start an out-of-schedule pipeline run on its own thread."""

        thread = threading.Thread(
            target=self.run_guarded, args=("forced",), name="daywall-force", daemon=True
        )
        thread.start()
        return thread
