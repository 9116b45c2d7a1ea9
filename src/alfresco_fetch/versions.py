"""Version resolution: pinned version or latest release on Nexus."""

import logging
import re

import requests

from .config import Config
from .console import log_info, log_warn
from .downloads import browse_url, get_artifact
from .spinner import spinner

logger = logging.getLogger(__name__)

# Release directories are purely numeric, dot separated (23.1, 23.1.0.1)
RELEASE_VERSION = re.compile(r"^[0-9]+(\.[0-9]+)*$")

_DIRECTORY_HREF = re.compile(r'<a\s+href="([^"]*)/"', re.IGNORECASE)


def version_key(version: str) -> tuple[int, ...]:
    """Sort key ordering release versions numerically (23.10 > 23.9 > 2.0.0)."""
    return tuple(int(part) for part in version.split("."))


def parse_listing(html: str) -> list[str]:
    """Extract release version directory names from a Nexus browse page.

    Only anchors that point at a directory (href ending in '/') are
    considered, and only their last path segment is kept. Names that are not
    purely numeric versions (snapshots, 'bogus', '..') are dropped.
    """
    versions = []
    for href in _DIRECTORY_HREF.findall(html):
        name = href.rstrip("/").rsplit("/", 1)[-1]
        if RELEASE_VERSION.match(name):
            versions.append(name)
    return versions


def latest_version(versions: list[str]) -> str | None:
    """Highest version by numeric ordering, or None for an empty list."""
    if not versions:
        return None
    return max(versions, key=version_key)


def fetch_latest_version(
    artifact: str,
    *,
    base_url: str | None = None,
    session: requests.Session | None = None,
) -> str | None:
    """Look up the newest released version of an artifact.

    Never raises for network or HTTP problems: a failed lookup is reported
    as a warning and None is returned so the caller can fall back to the
    pinned version.
    """
    url = browse_url(artifact, base_url)
    logger.debug(f"Fetching version listing from {url}")
    get = session.get if session is not None else requests.get

    try:
        with spinner(f"Looking up latest {artifact}"):
            response = get(url)
    except requests.RequestException as e:
        log_warn(f"Could not fetch version listing for {artifact}: {e}")
        return None

    if response.status_code != 200:
        log_warn(
            f"Version listing for {artifact} returned HTTP {response.status_code}"
        )
        return None

    versions = parse_listing(response.text)
    logger.debug(f"Found {len(versions)} release versions: {versions}")
    latest = latest_version(versions)
    if latest is None:
        log_warn(f"No release versions found in listing for {artifact}")
    return latest


def resolve_version(
    config: Config,
    *,
    artifact_key: str = "governance_distribution",
    session: requests.Session | None = None,
) -> str:
    """Decide the effective version for this run.

    CONTRACT:
      Inputs:
        - config: loaded Config; alfresco_version is never empty

      Outputs:
        - non-empty version string

      Invariants:
        - use_latest_versions=False: returns the pinned version, no network
        - use_latest_versions=True: returns the highest listed release, or
          the pinned version when the lookup fails or finds nothing
        - Never raises for lookup failures
    """
    if not config.use_latest_versions:
        return config.alfresco_version

    log_warn("USE_LATEST_VERSIONS is enabled - fetching latest versions...")
    artifact = get_artifact(artifact_key)["artifact"]
    latest = fetch_latest_version(
        artifact, base_url=config.nexus_base_url, session=session
    )
    if latest is None:
        log_info(f"Falling back to pinned version {config.alfresco_version}")
        return config.alfresco_version
    return latest
