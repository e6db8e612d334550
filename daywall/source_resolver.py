"""
Source Resolver

Turn the wallpaper listing page into a direct download URL.

The listing site does not expose a stable image URL. Instead the page links (with a
relative href) to a detail page, and the image itself lives under a size-specific
path below that detail page, e.g.

    listing page  https://wallscloud.net/ru/wallpapers/random
    card link     /ru/wallpapers/some-wallpaper-slug
    download      https://wallscloud.net/ru/wallpapers/some-wallpaper-slug/1600x900/download

The functions below do one step each so they can be tested in isolation;
resolve_download_url() chains them together.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

import requests
from bs4 import BeautifulSoup

from daywall.errors import FetchError, ExtractionError

logger = logging.getLogger(__name__)

USER_AGENT = "daywall/0.1"


def fetch_listing(
    listing_url: str, session: Optional[requests.Session] = None, timeout: float = 30.0
) -> bytes:
    """
    GET the listing page and return the raw body. Raise FetchError on a transport
    failure or any non-2xx status.
    """

    getter = session if session is not None else requests

    try:
        r = getter.get(listing_url, headers={"User-Agent": USER_AGENT}, timeout=timeout)

    except requests.exceptions.RequestException as error:
        raise FetchError(f"could not reach {listing_url}: {error}") from error

    # successful request but received a bad response from the server.
    try:
        r.raise_for_status()
    except requests.exceptions.HTTPError as error:
        raise FetchError(
            f"listing page {listing_url} returned status code {r.status_code}"
        ) from error

    return r.content


def extract_link(page: bytes, selector: str) -> str:
    """
    Find the node matching the CSS selector and return its href, falling back to
    data-href when href is missing or empty.
    """

    soup = BeautifulSoup(page, "html.parser")
    node = soup.select_one(selector)

    if node is None:
        raise ExtractionError(f"no element on the listing page matches '{selector}'")

    href = (node.get("href") or "").strip()
    if not href:
        href = (node.get("data-href") or "").strip()

    if not href:
        raise ExtractionError(f"element matching '{selector}' has no href or data-href")

    return href


def is_absolute(link: str) -> bool:
    return urlsplit(link).scheme in ("http", "https")


def absolutize(link: str, listing_url: str) -> str:
    """
    Resolve a link found on the listing page against the listing page's origin
    (scheme and host). Absolute links are returned unchanged. The origin and the
    path are joined with exactly one slash. Raise ExtractionError if the link cannot
    be parsed as a URL at all.
    """

    try:
        if is_absolute(link):
            return link

        base = urlsplit(listing_url)

        # protocol-relative: //host/path
        if link.startswith("//") and urlsplit(link).netloc:
            return f"{base.scheme}:{link}"

    # urlsplit rejects things like an unbalanced '[' in the host
    except ValueError as error:
        raise ExtractionError(f"listing page links to a malformed URL '{link}': {error}") from error

    origin = f"{base.scheme}://{base.netloc}"
    return f"{origin}/{link.lstrip('/')}"


def append_suffix(url: str, suffix: str) -> str:
    """Append the image size suffix with exactly one slash at the junction."""

    return f"{url.rstrip('/')}/{suffix.lstrip('/')}"


def resolve_download_url(
    listing_url: str,
    selector: str,
    image_suffix: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
) -> str:
    """
    Retrieve the listing page and resolve it to the absolute download URL of the
    current wallpaper. Raises FetchError or ExtractionError.
    """

    page = fetch_listing(listing_url, session=session, timeout=timeout)
    link = extract_link(page, selector)
    url = append_suffix(absolutize(link, listing_url), image_suffix)

    logger.debug("resolved %s to %s", link, url)
    return url
