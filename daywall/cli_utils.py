"""
daywall CLI Utilities

Helpers shared by the click commands: error formatting for command callbacks, and the
terminal bridge that stands in for a tray menu while 'daywall run' is active.

The bridge understands two requests, matching the two menu entries of a tray icon:

    force   run the pipeline now, independently of the schedule
    exit    stop the scheduler and leave

They arrive either as lines typed on standard input ("f"/"force", "q"/"quit"/"exit")
or as signals: SIGINT and SIGTERM request exit, SIGUSR1 (POSIX only) requests a
forced update, e.g. `kill -USR1 <pid>` from a keyboard shortcut or cron.
"""

import logging
import signal
import sys
import threading
from functools import wraps
from typing import Callable, TextIO

from daywall.console import describe, fail, warn
from daywall.errors import DaywallError

logger = logging.getLogger(__name__)

FORCE_COMMANDS = ("f", "force")
EXIT_COMMANDS = ("q", "quit", "exit")


def catch_errors(func):
    """
    Catch and format errors with the "fail" console template and gracefully
    exit the application with an error code.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)

        except DaywallError as error:
            fail(str(error))
            sys.exit(1)

        except Exception as error:
            logger.debug("unhandled error", exc_info=True)
            fail(f"something unexpected happened: {error}")
            sys.exit(1)

    return wrapper


class TerminalBridge:
    """
    Collect force and exit requests from stdin and from signals, and hand them to
    the on_force callback / the exit_requested event. wait() blocks the calling
    thread until exit is requested.
    """

    def __init__(self, on_force: Callable[[], object], stdin: TextIO = None):
        self.on_force = on_force
        self.stdin = stdin if stdin is not None else sys.stdin
        self.exit_requested = threading.Event()
        self._previous_handlers = {}

    def request_exit(self) -> None:
        self.exit_requested.set()

    def request_force(self) -> None:
        if self.exit_requested.is_set():
            return
        self.on_force()

    def handle_line(self, line: str) -> None:
        command = line.strip().lower()

        if not command:
            return

        if command in FORCE_COMMANDS:
            describe(":arrows_counterclockwise-emoji: forcing wallpaper update ...")
            self.request_force()

        elif command in EXIT_COMMANDS:
            self.request_exit()

        else:
            warn(f"unknown command '{command}'. Type 'force' or 'exit'.")

    def _read_stdin(self) -> None:
        for line in self.stdin:
            self.handle_line(line)
            if self.exit_requested.is_set():
                return

        # stdin closed (e.g. started detached); signals still work
        logger.debug("stdin closed, waiting for signals only")

    def _on_signal(self, signum, frame) -> None:
        if signum == getattr(signal, "SIGUSR1", None):
            self.request_force()
        else:
            self.request_exit()

    def install_signal_handlers(self) -> None:
        """Only possible from the main thread; silently skipped elsewhere."""

        if threading.current_thread() is not threading.main_thread():
            return

        signals = [signal.SIGINT, signal.SIGTERM]
        if hasattr(signal, "SIGUSR1"):
            signals.append(signal.SIGUSR1)

        for signum in signals:
            self._previous_handlers[signum] = signal.signal(signum, self._on_signal)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def wait(self, poll: float = 0.5) -> None:
        """
        Read requests until exit is requested. The main thread polls the event with a
        timeout so signal handlers get a chance to run on every platform.
        """

        reader = threading.Thread(target=self._read_stdin, name="daywall-stdin", daemon=True)
        reader.start()

        while not self.exit_requested.wait(poll):
            pass
