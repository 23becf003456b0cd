"""
speakeval.acquire.media - Video download and local copy.

Remote references are streamed to disk with requests; anything else is
treated as a filesystem path and copied.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from urllib.parse import urlparse

import requests
from requests import exceptions as requests_exceptions

from speakeval.exceptions import AcquisitionError
from speakeval.logging import logger

REMOTE_SCHEMES = {"http", "https"}
DEFAULT_CHUNK_SIZE = 64 * 1024


def is_remote(reference: str) -> bool:
    """Return True if the reference is an absolute http(s) URL."""
    parsed = urlparse(reference.strip())
    return parsed.scheme.lower() in REMOTE_SCHEMES and bool(parsed.netloc)


def download_video(
    url: str,
    dest_path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    session: requests.Session | None = None,
) -> Path:
    """Stream a remote video to disk.

    Returns only after the whole body has been written and the file closed.

    Args:
        url: HTTP(S) URL of the video
        dest_path: Destination file
        chunk_size: Bytes per streamed chunk
        session: Optional requests session (defaults to module-level requests)

    Returns:
        dest_path

    Raises:
        AcquisitionError: On transport errors or non-2xx status
    """
    http = session or requests
    dest_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with http.get(url, stream=True) as r:
            r.raise_for_status()
            with open(dest_path, "wb") as f:
                for chunk in r.iter_content(chunk_size=chunk_size):
                    if chunk:
                        f.write(chunk)
    except requests_exceptions.RequestException as e:
        raise AcquisitionError(f"Download failed for {url}: {e}") from e
    except OSError as e:
        raise AcquisitionError(f"Could not write {dest_path}: {e}") from e

    return dest_path


def copy_video(source: str | Path, dest_path: Path) -> Path:
    """Copy a local video file.

    Raises:
        AcquisitionError: If the source is missing or unreadable
    """
    source_path = Path(source).expanduser()
    if not source_path.is_file():
        raise AcquisitionError(f"Video file not found: {source_path}")

    dest_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copyfile(source_path, dest_path)
    except OSError as e:
        raise AcquisitionError(f"Could not copy {source_path}: {e}") from e

    return dest_path


def acquire_media(
    reference: str,
    dest_path: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    session: requests.Session | None = None,
) -> Path:
    """Produce a local file for a media reference.

    Args:
        reference: HTTP(S) URL or local filesystem path
        dest_path: Where the local copy should be written
        chunk_size: Download chunk size for remote references
        session: Optional requests session

    Returns:
        dest_path

    Raises:
        AcquisitionError: If the media cannot be fetched
    """
    if is_remote(reference):
        logger.debug("Downloading %s -> %s", reference, dest_path)
        return download_video(reference, dest_path, chunk_size=chunk_size, session=session)

    logger.debug("Copying %s -> %s", reference, dest_path)
    return copy_video(reference, dest_path)
