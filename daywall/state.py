"""
Update Marker

Persist the date of the last successful wallpaper update so that a restart (or a
scheduled trigger that follows a forced update) does not change the wallpaper twice
on the same day.

The marker file holds a single ISO-8601 date (YYYY-MM-DD) in UTF-8. Because the
format is fixed and zero-padded, comparing the stripped file contents to today's
isoformat() string is enough; no parsing is needed on the hot path. Both reading and
writing go through the same 'today' callable, so they always agree on local time.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class UpdateMarker:
    """
    Owner of the marker file. Reading fails closed (anything unexpected means "not
    updated today") and writing is best-effort (the wallpaper is already applied by
    the time the marker is written, so a failed write must not turn success into
    failure).
    """

    def __init__(self, path: Path, today: Callable[[], date] = date.today):
        self.path = Path(path)
        self._today = today

    def _read(self) -> str:
        return self.path.read_text(encoding="utf-8").strip()

    def was_updated_today(self) -> bool:
        try:
            stored = self._read()

        except (OSError, UnicodeDecodeError) as error:
            logger.debug("marker %s unreadable, treating as not updated: %s", self.path, error)
            return False

        return stored == self._today().isoformat()

    def last_updated(self) -> Optional[date]:
        """Return the stored date, or None if the marker is missing or malformed."""

        try:
            return date.fromisoformat(self._read())

        except (OSError, UnicodeDecodeError, ValueError):
            return None

    def mark_updated_now(self) -> bool:
        """
        Overwrite the marker with today's date. Returns False (and logs a warning)
        instead of raising if the marker could not be written.
        """

        today = self._today().isoformat()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(today, encoding="utf-8")

        except OSError as error:
            logger.warning("could not record update date in %s: %s", self.path, error)
            return False

        logger.debug("marker %s set to %s", self.path, today)
        return True
