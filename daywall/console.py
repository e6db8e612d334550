"""
daywall console utilities

This module provides application-wide access to a Rich Console object for handling
writing to stdout and stderr, the logging setup for the 'daywall' logger, and the
default Notifier that the scheduler reports pipeline outcomes to.
"""

import logging
from io import StringIO

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

daywall_theme = Theme(
    {"warning": "orange_red1", "fail": "bold red", "confirm": "", "describe": ""}
)

console = Console(theme=daywall_theme)
error_console = Console(theme=daywall_theme, stderr=True)

logger = logging.getLogger("daywall")


"""
Formatting helpers
"""


def warn(msg: str):
    """
    Format msg and print to stderr.
    """

    error_console.print(f":exclamation_mark-emoji: [bold]warning: [/] {msg}", style="warning")


def describe(msg: str, **kwargs):
    """
    Format descriptive msg and print to stdout.
    """

    console.print(f"{msg}", style="describe", **kwargs)


def confirm_success(msg: str, **kwargs):
    """
    Format confirmation msg and print to stdout. Accept any additional kwargs that
    console.print from rich module exposes.
    """

    console.print(f"{msg}", style="confirm", **kwargs)


def fail(msg: str):
    """
    Format failure msg and print to stderr.
    """

    error_console.print(f":x-emoji: failed. {msg}", style="fail")


def silence():
    """Capture everything written to the consoles into a junk stream."""

    console.file = StringIO()
    error_console.file = StringIO()


def setup_logging(verbosity: str = "normal") -> logging.Logger:
    """
    Attach a RichHandler to the 'daywall' logger. Every module logs through
    logging.getLogger(__name__) so they all end up here. Calling this twice does not
    stack handlers.
    """

    level = {
        "quiet": logging.ERROR,
        "normal": logging.INFO,
        "verbose": logging.DEBUG,
    }.get(verbosity, logging.INFO)

    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(console=error_console, show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    logger.setLevel(level)
    logger.propagate = False
    return logger


class Notifier:
    """
    Sink for the one-line outcome of every pipeline run. Implementations must not
    block and must not raise: the scheduler calls notify() from its own thread.
    """

    def notify(self, title: str, message: str) -> None:
        raise NotImplementedError


class ConsoleNotifier(Notifier):
    """Print notifications through the rich console."""

    def notify(self, title: str, message: str) -> None:
        try:
            if title.lower().startswith("error"):
                fail(f"[bold]{escape(title)}:[/] {escape(message)}")
            else:
                confirm_success(
                    f":desktop_computer-emoji:  [bold]{escape(title)}:[/] {escape(message)}"
                )

        except Exception:
            logger.exception("could not display notification %r", title)
