"""
daywall Configuration Management

This file handles utilities related to loading configuration variables for daywall. A
DaywallConfig should be loaded at startup by the CLI before the scheduler or pipeline
are constructed, and then passed into them explicitly. Raise a ConfigError for any
issues that arise in processing or retrieving these configuration variables.

The application directory is resolved from the environment:

    DAYWALL_CONFIG_DIR       explicit override, used as-is
    %APPDATA%/DaywallTray    on Windows
    $XDG_CONFIG_HOME/daywall elsewhere (falls back to ~/.config/daywall)

An optional "config.json" inside the application directory may override any of the
defaults below. The file is never required; without it daywall runs on defaults.
"""

import json
import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path

from daywall.errors import ConfigError

LISTING_URL = "https://wallscloud.net/ru/wallpapers/random"

# CSS form of the structural path to the first wallpaper card on the listing page:
# //*[@id="main"]/div[4]/div[2]/figure[1]/div/a
LINK_SELECTOR = (
    "#main > div:nth-of-type(4) > div:nth-of-type(2) > "
    "figure:nth-of-type(1) > div > a"
)

IMAGE_SUFFIX = "/1600x900/download"

WINDOWS_APP_FOLDER = "DaywallTray"
APP_FOLDER = "daywall"


def default_app_dir() -> Path:
    """
    Return the directory daywall keeps its marker, wallpaper and config.json in.
    """

    override = os.environ.get("DAYWALL_CONFIG_DIR")
    if override:
        return Path(override).expanduser()

    if sys.platform.startswith("win"):
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise ConfigError("APPDATA is not set, cannot locate the application directory.")
        return Path(appdata) / WINDOWS_APP_FOLDER

    base = os.environ.get("XDG_CONFIG_HOME") or "~/.config"
    return Path(base).expanduser() / APP_FOLDER


@dataclass(frozen=True)
class DaywallConfig:
    """
    Immutable configuration for a daywall process. The pipeline and scheduler receive
    one of these at construction time and never read module globals, so tests can
    substitute any field with dataclasses.replace().
    """

    listing_url: str = LISTING_URL
    selector: str = LINK_SELECTOR
    image_suffix: str = IMAGE_SUFFIX
    trigger_hour: int = 9
    trigger_minute: int = 0
    request_timeout: float = 30.0
    app_dir: Path = None
    marker_name: str = "last_update.txt"
    wallpaper_name: str = "wallpaper.bmp"

    def __post_init__(self):
        """
        Handle the case where a DaywallConfig is created from JSON, which cannot
        deserialize a str into a Path. The dataclass is frozen so assignment goes
        through object.__setattr__.
        """

        app_dir = default_app_dir() if self.app_dir is None else self.app_dir
        object.__setattr__(self, "app_dir", Path(app_dir).expanduser())

        if not 0 <= int(self.trigger_hour) <= 23:
            raise ConfigError(f"trigger_hour must be between 0 and 23, got {self.trigger_hour}.")

        if not 0 <= int(self.trigger_minute) <= 59:
            raise ConfigError(
                f"trigger_minute must be between 0 and 59, got {self.trigger_minute}."
            )

    @property
    def marker_path(self) -> Path:
        return self.app_dir / self.marker_name

    @property
    def wallpaper_path(self) -> Path:
        return self.app_dir / self.wallpaper_name


def ensure_app_dir(config: DaywallConfig) -> Path:
    """Create the application directory if it is missing."""

    try:
        config.app_dir.mkdir(parents=True, exist_ok=True)

    except OSError as error:
        raise ConfigError(
            f"Could not create application directory {config.app_dir}: {error}"
        ) from error

    return config.app_dir


def load_config(app_dir: Path = None) -> DaywallConfig:
    """
    Load config.json from the application directory and instantiate a DaywallConfig.
    Raise ConfigError if the file is missing, is not valid JSON, or names a key that
    DaywallConfig does not define.
    """

    app_dir = default_app_dir() if app_dir is None else Path(app_dir)
    config_src = app_dir / "config.json"

    try:
        with config_src.open("r", encoding="utf-8") as file:
            from_json = json.loads(file.read())

    except json.JSONDecodeError as error:
        raise ConfigError(f"There was an issue reading the config: {error}") from error

    except FileNotFoundError as error:
        raise ConfigError(f"There was an issue opening the config: {error}") from error

    if not isinstance(from_json, dict):
        raise ConfigError(f"{config_src} must hold a JSON object.")

    known = {field.name for field in fields(DaywallConfig)}
    unknown = sorted(set(from_json) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys in {config_src}: {', '.join(unknown)}")

    from_json.setdefault("app_dir", app_dir)

    try:
        return DaywallConfig(**from_json)

    except (TypeError, ValueError) as error:
        raise ConfigError(f"Invalid configuration in {config_src}: {error}") from error


def init() -> DaywallConfig:
    """
    Initialize daywall configuration: use config.json when one exists, otherwise
    defaults. Either way make sure the application directory exists.
    """

    app_dir = default_app_dir()

    if (app_dir / "config.json").exists():
        config = load_config(app_dir)
    else:
        config = DaywallConfig(app_dir=app_dir)

    ensure_app_dir(config)
    return config
