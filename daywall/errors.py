"""
daywall Errors

Every stage of the wallpaper pipeline raises one of the errors defined here. Each error
carries a 'kind' which the pipeline copies onto its PipelineResult so that callers
(the scheduler, the force handler, the CLI) can report what went wrong without
catching every error type individually.

Library exceptions (requests, Pillow, OSError) are wrapped at the boundary of the
stage that produced them using 'raise ... from error' so the original traceback
survives for the log.
"""


class DaywallError(Exception):
    """Base class for all errors raised by daywall."""

    kind = "unknown"


class ConfigError(DaywallError):
    """Raise when an issue occurs with handling daywall configuration."""

    kind = "config"


class FetchError(DaywallError):
    """
    Raised when the listing page cannot be retrieved: transport failure or a
    non-2xx status code.
    """

    kind = "network"


class ExtractionError(DaywallError):
    """
    Raised when the listing page does not contain a node matching the selector,
    or the matched node has no usable link attribute.
    """

    kind = "extraction"


class DownloadError(DaywallError):
    """Raised when the image download is unsuccessful."""

    kind = "network"


class DecodeError(DaywallError):
    """
    Raised when the downloaded bytes are not an image Pillow can decode. Wrapper
    around the PIL UnidentifiedImageError for better error messaging.
    """

    kind = "decode"


class WallpaperIOError(DaywallError):
    """Raised when the transcoded wallpaper cannot be written to disk."""

    kind = "io"


class ApplyError(DaywallError):
    """Raised when the operating system refuses to update the desktop background."""

    kind = "apply"
