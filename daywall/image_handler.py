"""
Image Handler

Utilities for downloading and transcoding wallpaper images.

Downloading images: supports only plain GET requests for an image resource at a known
URL, with no expectation of authentication. The body is streamed into a temporary file
that exists only for the duration of a 'with' block.

Transcoding: every image is re-encoded as an uncompressed 24-bit BMP, which is the one
format every supported desktop accepts without further conversion. The BMP is written
next to the destination and moved into place only once it is complete, so the current
wallpaper file is never left half-written and is untouched if anything fails.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import requests
from PIL import Image, UnidentifiedImageError

from daywall.errors import DownloadError, DecodeError, WallpaperIOError
from daywall.source_resolver import USER_AGENT

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def validate_image(input) -> str:
    """
    Determine whether input is a valid image and return its format. PIL open accepts a
    Path object, string, or file object. Only the header is read, so this is safe to
    use as a validation method.
    """

    try:
        with Image.open(input) as image:
            return image.format

    except UnidentifiedImageError as error:
        raise DecodeError(f"{input} does not appear to be an image.") from error

    except FileNotFoundError as error:
        raise DecodeError(f"{input} could not be found.") from error


@contextmanager
def download_to_temp(
    url: str, session: Optional[requests.Session] = None, timeout: float = 30.0
) -> Iterator[Path]:
    """
    Stream the resource at url into a temporary file and yield its path. The file is
    removed when the block exits, whatever the outcome. Raise DownloadError on a
    transport failure or non-2xx status.
    """

    getter = session if session is not None else requests

    # NamedTemporaryFile with delete=False so the file can be reopened by name on
    # Windows while we still own cleanup.
    try:
        tmp = tempfile.NamedTemporaryFile(prefix="wall_", delete=False)
    except OSError as error:
        raise WallpaperIOError(f"could not create a temporary file: {error}") from error

    tmp_path = Path(tmp.name)

    try:
        try:
            with tmp:
                # requests follows redirects on our behalf, the download endpoint
                # usually answers with one.
                r = getter.get(
                    url, headers={"User-Agent": USER_AGENT}, timeout=timeout, stream=True
                )
                try:
                    try:
                        r.raise_for_status()
                    except requests.exceptions.HTTPError as error:
                        raise DownloadError(
                            f"something went wrong trying to access {url} (status code {r.status_code})"
                        ) from error

                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        tmp.write(chunk)
                finally:
                    r.close()

        # RequestException is an OSError, so it has to be caught first
        except requests.exceptions.RequestException as error:
            raise DownloadError(f"could not download {url}: {error}") from error

        except OSError as error:
            raise WallpaperIOError(f"could not write temporary file {tmp_path}: {error}") from error

        logger.debug("downloaded %s to %s (%d bytes)", url, tmp_path, tmp_path.stat().st_size)
        yield tmp_path

    finally:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as error:
            logger.warning("could not remove temporary file %s: %s", tmp_path, error)


def decode(src: Path) -> Image.Image:
    """
    Decode the image at src fully into memory. Raise DecodeError for unrecognized or
    corrupt data.
    """

    try:
        with Image.open(src) as image:
            image.load()
            # BMP holds no alpha or palette the desktop would honour
            return image.convert("RGB")

    except UnidentifiedImageError as error:
        raise DecodeError("the downloaded file does not appear to be an image") from error

    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as error:
        raise DecodeError(f"the downloaded image could not be decoded: {error}") from error


def write_bmp(image: Image.Image, dest: Path) -> Path:
    """
    Encode image as BMP at dest. The encoded file is written to a sibling temporary
    file first and then moved over dest, so dest is either the old file or the
    complete new one.
    """

    dest = Path(dest)
    partial = None

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            dir=dest.parent, prefix=f".{dest.stem}_", suffix=".part", delete=False
        ) as out:
            partial = Path(out.name)
            image.save(out, format="BMP")
        os.replace(partial, dest)

    except OSError as error:
        if partial is not None:
            try:
                partial.unlink()
            except OSError:
                pass
        raise WallpaperIOError(f"could not write wallpaper to {dest}: {error}") from error

    return dest


def transcode(src: Path, dest: Path) -> Path:
    """Decode the image at src and write it to dest as BMP."""

    image = decode(src)
    logger.debug("decoded %s: %sx%s", src, image.width, image.height)
    return write_bmp(image, dest)
