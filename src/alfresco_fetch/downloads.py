"""Artifact catalog, HTTP fetching and archive self-tests.

This module provides:
- Access to the repository catalog (artifacts.yml): base URL, paths and
  artifact naming
- URL construction for directory listings and archive downloads
- An idempotent streaming downloader
- Zip integrity checks for downloaded archives and jars

There is deliberately no checksum verification: a non-empty file on disk is
treated as already downloaded.
"""

import logging
import math
import zipfile
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import click
import requests
import yaml

from .console import log_error, log_info

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# What zipfile raises for damaged, truncated, encrypted or unsupported archives
ARCHIVE_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    RuntimeError,
    NotImplementedError,
    OSError,
    EOFError,
)


class DownloadMetadataError(Exception):
    """Raised when catalog metadata is missing or invalid."""

    pass


class IntegrityError(Exception):
    """Raised when a downloaded archive fails its self-test."""

    pass


class TransferError(Exception):
    """Raised when an artifact could not be downloaded."""

    pass


@dataclass(frozen=True)
class DownloadTarget:
    """One artifact to fetch: where from, where to, and what to call it."""

    url: str
    destination: Path
    description: str


def _load_catalog_yaml() -> dict[str, Any]:
    """Load the artifacts.yml catalog file."""
    catalog_path = Path(__file__).parent / "artifacts.yml"
    with open(catalog_path) as f:
        data = yaml.safe_load(f)
    return dict(data)


_CATALOG: dict[str, Any] | None = None


def get_catalog() -> dict[str, Any]:
    """Get the catalog dictionary.

    Returns a cached copy of the artifacts.yml content.
    """
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = _load_catalog_yaml()
    return _CATALOG


def get_repository() -> dict[str, str]:
    """Get remote repository metadata (base_url, browse_path, download_path)."""
    repository: dict[str, str] = get_catalog()["repository"]
    return repository


def get_artifact(key: str) -> dict[str, str]:
    """Get metadata for a catalog artifact.

    Args:
        key: Catalog key, e.g. "governance_distribution"

    Returns:
        Dict with 'artifact', 'description', 'extension', 'archive_glob'
        and 'dist_dir_glob' keys

    Raises:
        DownloadMetadataError: If the artifact is not in the catalog
    """
    artifacts = get_catalog().get("artifacts", {})
    if key not in artifacts:
        available = ", ".join(artifacts)
        raise DownloadMetadataError(
            f"Unknown artifact: {key}. Available: {available}"
        )
    return dict(artifacts[key])


def _base(base_url: str | None) -> str:
    return (base_url or get_repository()["base_url"]).rstrip("/")


def browse_url(artifact: str, base_url: str | None = None) -> str:
    """URL of the HTML directory listing of an artifact's versions."""
    repo = get_repository()
    return f"{_base(base_url)}/{repo['browse_path']}/{artifact}/"


def archive_name(artifact: str, version: str, extension: str = "zip") -> str:
    """File name of a released artifact archive."""
    return f"{artifact}-{version}.{extension}"


def artifact_target(
    key: str, version: str, download_dir: Path, base_url: str | None = None
) -> DownloadTarget:
    """Build the download target for a catalog artifact at a given version."""
    meta = get_artifact(key)
    repo = get_repository()
    artifact = meta["artifact"]
    filename = archive_name(artifact, version, meta.get("extension", "zip"))
    url = f"{_base(base_url)}/{repo['download_path']}/{artifact}/{version}/{filename}"
    return DownloadTarget(
        url=url,
        destination=download_dir / filename,
        description=f"{meta['description']} {version}",
    )


def human_size(num_bytes: int) -> str:
    """Format a byte count the way ``ls -lh`` does (812, 1.1K, 4.0K, 12M, 1.5G).

    Like ``ls``, fractional sizes are rounded up, never down.
    """
    if num_bytes < 1024:
        return str(num_bytes)
    size = float(num_bytes)
    for unit in ("K", "M", "G", "T"):
        size /= 1024
        if size < 10:
            tenths = math.ceil(size * 10)
            if tenths < 100:
                return f"{tenths / 10:.1f}{unit}"
            return f"10{unit}"
        whole = math.ceil(size)
        if whole < 1024:
            return f"{whole}{unit}"
    return f"{math.ceil(size)}T"


def _has_content(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def _discard(*paths: Path) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Could not remove {path}: {e}")


def _stream_to_file(response: requests.Response, part_path: Path, label: str) -> None:
    """Write a streamed response body to part_path with a progress bar.

    Without a Content-Length the bar cannot show a percentage, so it shows
    the number of bytes received so far instead.
    """
    length = response.headers.get("Content-Length")
    total = int(length) if length and length.isdigit() else None

    with open(part_path, "wb") as f:
        chunks = response.iter_content(chunk_size=CHUNK_SIZE)
        if total is None:
            with click.progressbar(
                _write_chunks(chunks, f),
                label=label,
                item_show_func=lambda n: human_size(n) if n is not None else None,
            ) as received:
                for _ in received:
                    pass
            return
        with click.progressbar(length=total, label=label) as bar:
            for chunk in chunks:
                f.write(chunk)
                bar.update(len(chunk))


def _write_chunks(chunks: Iterator[bytes], f: BinaryIO) -> Iterator[int]:
    """Write each chunk to f, yielding the running byte count."""
    written = 0
    for chunk in chunks:
        f.write(chunk)
        written += len(chunk)
        yield written


def download_file(
    url: str,
    destination: Path,
    description: str,
    *,
    session: requests.Session | None = None,
) -> bool:
    """Download url to destination unless a non-empty copy already exists.

    CONTRACT:
      Inputs:
        - url: http(s) URL of the artifact
        - destination: final file path, parent directory must exist
        - description: human readable name for log lines

      Outputs:
        - True when destination holds the artifact (downloaded or cached)
        - False on any failure

      Invariants:
        - A non-empty destination is never re-fetched (no network access)
        - On failure nothing is left at destination; the body is streamed to
          a sibling .part file that only replaces destination on success
        - Success requires HTTP 200 (after redirects) and a non-empty body
    """
    filename = destination.name

    if _has_content(destination):
        log_info(f"Already downloaded: {filename}")
        return True

    log_info(f"Downloading {description}...")
    log_info(f"  URL: {url}")
    log_info(f"  Destination: {destination}")

    part_path = destination.with_name(destination.name + ".part")
    get = session.get if session is not None else requests.get

    try:
        with get(url, stream=True, allow_redirects=True) as response:
            if response.status_code != 200:
                log_error(f"Download failed with HTTP status: {response.status_code}")
                _discard(part_path, destination)
                return False
            _stream_to_file(response, part_path, filename)
    except requests.RequestException as e:
        log_error(f"Download failed: {e}")
        _discard(part_path, destination)
        return False
    except OSError as e:
        log_error(f"Could not write {filename}: {e}")
        _discard(part_path, destination)
        return False
    except KeyboardInterrupt:
        _discard(part_path)
        raise

    if not _has_content(part_path):
        log_error(f"Downloaded file is empty: {filename}")
        _discard(part_path, destination)
        return False

    part_path.replace(destination)
    log_info(f"Downloaded: {filename} ({human_size(destination.stat().st_size)})")
    return True


def check_archive(path: Path) -> bool:
    """Check a zip-compatible archive (zip, jar) for structural and CRC errors.

    Returns:
        True if every member can be read back with a matching CRC
    """
    try:
        with zipfile.ZipFile(path) as archive:
            bad_member = archive.testzip()
    except ARCHIVE_READ_ERRORS as e:
        logger.debug(f"{path.name} is not a readable archive: {e}")
        return False
    if bad_member is not None:
        logger.debug(f"{path.name}: CRC mismatch in {bad_member}")
        return False
    return True
