"""
Tests for config.py

The application directory comes from the environment, so every test here sets or
clears the relevant variables with monkeypatch rather than reading the real ones.
"""

import json
import sys
from dataclasses import replace
from pathlib import Path

import pytest

# following entities are tested in this module:
from daywall.config import DaywallConfig
from daywall.config import default_app_dir
from daywall.config import load_config
from daywall.config import init
from daywall.config import LISTING_URL, LINK_SELECTOR, IMAGE_SUFFIX
from daywall.errors import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DAYWALL_CONFIG_DIR", "APPDATA", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(tmp_path):
    config = DaywallConfig(app_dir=tmp_path)

    assert config.listing_url == LISTING_URL
    assert config.selector == LINK_SELECTOR
    assert config.image_suffix == IMAGE_SUFFIX
    assert (config.trigger_hour, config.trigger_minute) == (9, 0)
    assert config.marker_path == tmp_path / "last_update.txt"
    assert config.wallpaper_path == tmp_path / "wallpaper.bmp"


def test_config_is_immutable(tmp_path):
    config = DaywallConfig(app_dir=tmp_path)

    with pytest.raises(AttributeError):
        config.trigger_hour = 10

    assert replace(config, trigger_hour=10).trigger_hour == 10
    assert config.trigger_hour == 9


@pytest.mark.parametrize(
    "overrides",
    [
        {"trigger_hour": 24},
        {"trigger_hour": -1},
        {"trigger_minute": 60},
    ],
)
def test_invalid_trigger_time(tmp_path, overrides):
    with pytest.raises(ConfigError):
        DaywallConfig(app_dir=tmp_path, **overrides)


def test_app_dir_override(clean_env, tmp_path):
    clean_env.setenv("DAYWALL_CONFIG_DIR", str(tmp_path / "custom"))

    assert default_app_dir() == tmp_path / "custom"
    assert DaywallConfig().app_dir == tmp_path / "custom"


def test_app_dir_xdg(clean_env, tmp_path):
    clean_env.setattr(sys, "platform", "linux")
    clean_env.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_app_dir() == tmp_path / "daywall"


def test_app_dir_windows(clean_env, tmp_path):
    clean_env.setattr(sys, "platform", "win32")
    clean_env.setenv("APPDATA", str(tmp_path))

    assert default_app_dir() == tmp_path / "DaywallTray"


def test_app_dir_windows_without_appdata(clean_env):
    clean_env.setattr(sys, "platform", "win32")

    with pytest.raises(ConfigError):
        default_app_dir()


def test_load_config_overrides(tmp_path):
    (tmp_path / "config.json").write_text(
        json.dumps({"trigger_hour": 7, "trigger_minute": 45, "image_suffix": "/1920x1080/download"})
    )

    config = load_config(tmp_path)

    assert (config.trigger_hour, config.trigger_minute) == (7, 45)
    assert config.image_suffix == "/1920x1080/download"
    assert config.app_dir == tmp_path
    assert config.listing_url == LISTING_URL


@pytest.mark.parametrize(
    "contents",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"schedule": "daily"}),
        json.dumps({"trigger_hour": "noon"}),
    ],
)
def test_load_config_invalid(tmp_path, contents):
    (tmp_path / "config.json").write_text(contents)

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_missing(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_init_creates_app_dir(clean_env, tmp_path):
    app_dir = tmp_path / "nested" / "daywall"
    clean_env.setenv("DAYWALL_CONFIG_DIR", str(app_dir))

    config = init()

    assert config.app_dir == app_dir
    assert app_dir.is_dir()


def test_load_config_matches_constructed(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"trigger_hour": 6}))

    assert load_config(tmp_path) == DaywallConfig(app_dir=tmp_path, trigger_hour=6)
