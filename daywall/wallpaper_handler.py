"""
Wallpaper Handler

This module handles updates to the desktop background. Everything that is specific to
an operating system lives behind the WallpaperApplier interface, so the pipeline only
ever calls applier.apply(path) and tests substitute a fake.

Windows: the background is set through SystemParametersInfoW in user32.dll with
SPI_SETDESKWALLPAPER, persisting the change to the user profile and broadcasting it
to running applications.
More information: https://learn.microsoft.com/en-us/windows/win32/api/winuser/nf-winuser-systemparametersinfow

GNOME: settings for desktop backgrounds are defined under the schema
org.gnome.desktop.background. We drop into the gsettings CLI to update the
'picture-uri' key (and 'picture-uri-dark', which GNOME 42+ uses in dark mode).
More information on this schema can be found at:
https://github.com/GNOME/gsettings-desktop-schemas/blob/master/schemas/org.gnome.desktop.background.gschema.xml.in
"""

import logging
import shutil
import subprocess
import sys
from pathlib import Path

from daywall.errors import ApplyError, DecodeError
from daywall.image_handler import validate_image

logger = logging.getLogger(__name__)

SPI_SETDESKWALLPAPER = 20
SPIF_UPDATEINIFILE = 0x01
SPIF_SENDWININICHANGE = 0x02

GNOME_SCHEMA = "org.gnome.desktop.background"


class WallpaperApplier:
    """
    Capability interface for setting the desktop background. apply() checks that the
    path points at a readable image and then hands it to the platform primitive.
    Raise ApplyError if either step fails.
    """

    def apply(self, img_path: Path) -> None:
        """
        Update the background image to the one specified by img_path.
        """

        # make sure to use the absolute path so the resource is locatable by the
        # desktop, which does no path resolution of its own.
        wallpaper_location = Path(img_path).expanduser().resolve()

        # subsequent operations will fail if path does not exist or is not a file, so catch this.
        if not wallpaper_location.is_file():
            raise ApplyError(
                f"Invalid path provided for image location: {img_path} does not exist."
            )

        try:
            validate_image(wallpaper_location)
        except DecodeError as error:
            raise ApplyError(
                f"Invalid image type provided. {wallpaper_location.name} is not a valid image."
            ) from error

        self._set_wallpaper(wallpaper_location)
        logger.info("desktop background set to %s", wallpaper_location)

    def _set_wallpaper(self, wallpaper_location: Path) -> None:
        raise NotImplementedError


class WindowsWallpaperApplier(WallpaperApplier):
    def _set_wallpaper(self, wallpaper_location: Path) -> None:
        import ctypes

        result = ctypes.windll.user32.SystemParametersInfoW(
            SPI_SETDESKWALLPAPER,
            0,
            str(wallpaper_location),
            SPIF_UPDATEINIFILE | SPIF_SENDWININICHANGE,
        )
        if not result:
            raise ApplyError(f"SystemParametersInfoW failed: {ctypes.WinError()}")


class GnomeWallpaperApplier(WallpaperApplier):
    """
    Update the GNOME background with gsettings. subprocess.CalledProcessError is
    raised by run() if gsettings exits non-zero, which is the main way of telling
    that the update did not go through.
    """

    def __init__(self, gsettings: str = None):
        self.gsettings = gsettings or shutil.which("gsettings") or "/usr/bin/gsettings"

    def _gsettings_set(self, key: str, value: str) -> None:
        subprocess.run(
            [self.gsettings, "set", GNOME_SCHEMA, key, value],
            check=True,
            text=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )

    def _set_wallpaper(self, wallpaper_location: Path) -> None:
        uri = wallpaper_location.as_uri()

        try:
            self._gsettings_set("picture-uri", uri)

        except (subprocess.CalledProcessError, OSError) as error:
            raise ApplyError(f"Could not set desktop background: {error}") from error

        # older GNOME releases have no picture-uri-dark key
        try:
            self._gsettings_set("picture-uri-dark", uri)
        except subprocess.CalledProcessError as error:
            logger.debug("picture-uri-dark not updated: %s", error.stderr)


def get_applier(platform: str = None) -> WallpaperApplier:
    """Return the WallpaperApplier for the running platform."""

    platform = platform or sys.platform

    if platform.startswith("win"):
        return WindowsWallpaperApplier()

    if platform.startswith("linux"):
        return GnomeWallpaperApplier()

    raise ApplyError(f"Setting the desktop background is not supported on {platform}.")
