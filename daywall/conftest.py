"""
conftest.py

Test configuration for daywall tests.

Defines Pytest fixtures for supplying test data to tests across the entire test suite.
Fixtures used within only a single module are defined directly in that module.

No test touches the network or the real desktop: HTTP goes through FakeSession (or a
patched requests.get), and the desktop through FakeApplier. Test images are generated
with Pillow on the fly instead of being checked in.
"""

import io
import threading
import time
from datetime import date, datetime, timedelta

import pytest
import requests
from PIL import Image

from daywall import console
from daywall.config import DaywallConfig
from daywall.console import Notifier
from daywall.errors import ApplyError
from daywall.pipeline import PipelineResult
from daywall.state import UpdateMarker
from daywall.wallpaper_handler import WallpaperApplier

TODAY = date(2026, 10, 19)

LISTING_URL = "https://wallscloud.net/ru/wallpapers/random"
DOWNLOAD_URL = "https://wallscloud.net/ru/wallpapers/misty-forest/1600x900/download"


def listing_page(href: str = "/ru/wallpapers/misty-forest", attr: str = "href") -> bytes:
    """
    Build a listing page laid out the way the default selector expects: the link is
    in the first figure of the second div of the fourth div inside #main.
    """

    link = f'<a {attr}="{href}" class="wall-link">open</a>' if attr else "<span>no link</span>"
    return f"""
    <html><body>
      <div id="main">
        <div class="header"></div>
        <div class="menu"></div>
        <div class="filters"></div>
        <div class="content">
          <div class="title"></div>
          <div class="grid">
            <figure><div>{link}</div></figure>
            <figure><div><a href="/ru/wallpapers/not-this-one">other</a></div></figure>
          </div>
        </div>
      </div>
    </body></html>
    """.encode("utf-8")


def image_bytes(fmt: str = "JPEG", mode: str = "RGB", size=(64, 36)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color="teal" if mode != "P" else 3).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeResponse:
    """Just enough of requests.Response for daywall's use."""

    def __init__(self, content: bytes = b"", status_code: int = 200, url: str = ""):
        self.content = content
        self.status_code = status_code
        self.url = url
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error for url: {self.url}")

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """
    Stand-in for requests.Session. routes maps url -> FakeResponse or an exception
    instance to raise. Every requested url is recorded in calls.
    """

    def __init__(self, routes: dict):
        self.routes = routes
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        outcome = self.routes.get(url, FakeResponse(status_code=404, url=url))
        if isinstance(outcome, Exception):
            raise outcome
        outcome.url = outcome.url or url
        return outcome


class FakeApplier(WallpaperApplier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.applied = []

    def apply(self, img_path):
        if self.fail:
            raise ApplyError("the desktop refused the new background")
        self.applied.append(img_path)


class FakeNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def notify(self, title: str, message: str) -> None:
        self.messages.append((title, message))


class FakeRunner:
    """
    Counts run_once() calls. When 'release' is given, each run blocks until it is set,
    which lets tests hold a run in flight.
    """

    def __init__(self, marker: UpdateMarker = None, result: PipelineResult = None, release=None):
        self.marker = marker
        self.result = result or PipelineResult.success()
        self.release = release
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.entered = threading.Event()
        self.called = threading.Event()
        self._lock = threading.Lock()

    def run_once(self) -> PipelineResult:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()

        if self.release is not None:
            self.release.wait(5)

        with self._lock:
            self.active -= 1
            self.calls += 1

        if self.marker is not None and self.result.ok:
            self.marker.mark_updated_now()

        self.called.set()
        return self.result


class MovingClock:
    """A clock that starts at 'start' and advances in real time."""

    def __init__(self, start: datetime):
        self.start = start
        self._origin = time.monotonic()

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=time.monotonic() - self._origin)


@pytest.fixture(autouse=True)
def reset_consoles():
    """Undo silence() so one quiet test does not mute the rest of the suite."""

    yield
    console.console.file = None
    console.error_console.file = None


@pytest.fixture
def app_dir(tmp_path):
    return tmp_path / "DaywallTray"


@pytest.fixture
def config(app_dir) -> DaywallConfig:
    return DaywallConfig(app_dir=app_dir, listing_url=LISTING_URL)


@pytest.fixture
def marker(config) -> UpdateMarker:
    return UpdateMarker(config.marker_path, today=lambda: TODAY)


@pytest.fixture
def tmp_downloads(tmp_path, monkeypatch):
    """Redirect tempfile to a private directory so leaked downloads are visible."""

    import tempfile

    downloads = tmp_path / "tmp"
    downloads.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(downloads))
    return downloads


@pytest.fixture
def test_image(tmp_path):
    path = tmp_path / "test_image.jpg"
    path.write_bytes(image_bytes("JPEG"))
    return path


@pytest.fixture
def fake_applier():
    return FakeApplier()


@pytest.fixture
def fake_notifier():
    return FakeNotifier()
