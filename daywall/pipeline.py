"""
Wallpaper Pipeline

One pipeline invocation is one complete attempt at:

    resolve -> download -> transcode -> apply -> mark

Stages run strictly in order and the first failure aborts the rest of the
invocation; nothing is retried here. Retrying is left to the scheduler's next
trigger or to the user forcing another run.

run_once() reports its outcome as a PipelineResult instead of raising, because
every caller (timer thread, force thread, CLI) does the same thing with it: show a
one-line notification and carry on.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests

from daywall import image_handler
from daywall import source_resolver
from daywall.config import DaywallConfig
from daywall.errors import (
    DaywallError,
    FetchError,
    ExtractionError,
    DownloadError,
    DecodeError,
    WallpaperIOError,
    ApplyError,
)
from daywall.state import UpdateMarker
from daywall.wallpaper_handler import WallpaperApplier

logger = logging.getLogger(__name__)

STAGE_ERRORS = (
    FetchError,
    ExtractionError,
    DownloadError,
    DecodeError,
    WallpaperIOError,
    ApplyError,
)


class FailureKind(str, Enum):
    NETWORK = "network"
    EXTRACTION = "extraction"
    DECODE = "decode"
    IO = "io"
    APPLY = "apply"


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline invocation. kind is None on success."""

    kind: Optional[FailureKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def success(cls, message: str = "Wallpaper changed successfully") -> "PipelineResult":
        return cls(kind=None, message=message)

    @classmethod
    def failure(cls, error: DaywallError) -> "PipelineResult":
        return cls(kind=FailureKind(error.kind), message=str(error))

    @property
    def title(self) -> str:
        """Notification title for this result."""

        if self.ok:
            return "Wallpaper updated"
        return f"Error ({self.kind.value})"


class PipelineRunner:
    """
    Runs the wallpaper pipeline against a fixed configuration. Holds no state between
    invocations, so any number of run_once() calls may overlap; they share only the
    output file and the marker, and the last one to finish wins.
    """

    def __init__(
        self,
        config: DaywallConfig,
        applier: WallpaperApplier,
        marker: UpdateMarker,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.applier = applier
        self.marker = marker
        self.session = session

    def _run(self) -> None:
        config = self.config

        url = source_resolver.resolve_download_url(
            config.listing_url,
            config.selector,
            config.image_suffix,
            session=self.session,
            timeout=config.request_timeout,
        )
        logger.info("downloading wallpaper from %s", url)

        with image_handler.download_to_temp(
            url, session=self.session, timeout=config.request_timeout
        ) as downloaded:
            wallpaper = image_handler.transcode(downloaded, config.wallpaper_path)

        # transcode only returns once the BMP is fully in place
        self.applier.apply(wallpaper)

    def run_once(self) -> PipelineResult:
        try:
            self._run()

        except STAGE_ERRORS as error:
            logger.error("wallpaper update failed (%s): %s", error.kind, error)
            return PipelineResult.failure(error)

        self.marker.mark_updated_now()
        logger.info("wallpaper updated from %s", self.config.listing_url)
        return PipelineResult.success()
