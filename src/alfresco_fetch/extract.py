"""Extraction of the downloaded distribution archive."""

import logging
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

from .console import log_info
from .downloads import (
    ARCHIVE_READ_ERRORS,
    IntegrityError,
    archive_name,
    get_artifact,
)
from .spinner import spinner

logger = logging.getLogger(__name__)

TEMP_PREFIX = "alfresco-install-"


class MissingArtifactError(Exception):
    """Raised when the expected archive is not in the download directory."""

    pass


@dataclass(frozen=True)
class ExtractionResult:
    """Where an archive was unpacked.

    temp_dir is owned by the caller; nothing in this package removes it.
    dist_root is the product directory inside it (temp_dir itself when the
    archive has no wrapping top-level folder).
    """

    archive: Path
    temp_dir: Path
    dist_root: Path


def find_distribution_archive(
    download_dir: Path,
    version: str | None = None,
    *,
    artifact_key: str = "governance_distribution",
) -> Path:
    """Locate the distribution archive in download_dir.

    The archive for ``version`` is preferred when it is present; otherwise
    the first match of the artifact's archive pattern in name order is used,
    so leftovers from older runs never win over the current version.

    Raises:
        MissingArtifactError: If no archive matches
    """
    meta = get_artifact(artifact_key)
    if version is not None:
        exact = download_dir / archive_name(
            meta["artifact"], version, meta.get("extension", "zip")
        )
        if exact.is_file():
            return exact

    candidates = sorted(
        p for p in download_dir.glob(meta["archive_glob"]) if p.is_file()
    )
    if not candidates:
        raise MissingArtifactError(
            f"{meta['description']} distribution not found in {download_dir}"
        )
    if len(candidates) > 1:
        logger.debug(f"Multiple archives match, using {candidates[0].name}")
    return candidates[0]


def locate_dist_root(temp_dir: Path, pattern: str) -> Path:
    """First immediate subdirectory matching pattern, else temp_dir itself."""
    matches = sorted(p for p in temp_dir.glob(pattern) if p.is_dir())
    if matches:
        return matches[0]
    return temp_dir


def extract_distribution(
    download_dir: Path,
    version: str | None = None,
    *,
    artifact_key: str = "governance_distribution",
) -> ExtractionResult:
    """Unpack the distribution archive into a fresh temporary directory.

    CONTRACT:
      Inputs:
        - download_dir: directory holding the downloaded archive
        - version: resolved version, used to prefer the matching archive

      Outputs:
        - ExtractionResult with the archive, temp dir and distribution root

      Invariants:
        - Every call extracts into a new, uniquely named directory
        - The whole archive is extracted
        - The temp directory is handed to the caller and never cleaned up

    Raises:
        MissingArtifactError: If no distribution archive is present
        IntegrityError: If the archive cannot be read
    """
    meta = get_artifact(artifact_key)
    archive = find_distribution_archive(
        download_dir, version, artifact_key=artifact_key
    )

    temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    log_info(f"Using temp directory: {temp_dir}")
    log_info(f"Extracting {archive.name}...")

    try:
        with spinner(f"Extracting {archive.name}"):
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(temp_dir)
    except ARCHIVE_READ_ERRORS as e:
        raise IntegrityError(f"Cannot extract {archive.name}: {e}") from e

    dist_root = locate_dist_root(temp_dir, meta["dist_dir_glob"])
    log_info(f"Distribution extracted to: {dist_root}")
    return ExtractionResult(archive=archive, temp_dir=temp_dir, dist_root=dist_root)
