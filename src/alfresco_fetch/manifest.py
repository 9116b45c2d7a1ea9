"""MANIFEST.txt generation for the download directory."""

import logging
from datetime import UTC, datetime
from pathlib import Path

from . import __commit__, __version__
from .config import Config
from .console import log_info, log_warn
from .downloads import human_size

logger = logging.getLogger(__name__)

MANIFEST_NAME = "MANIFEST.txt"


def _listed_files(download_dir: Path) -> list[Path]:
    files = [*download_dir.glob("*.zip"), *download_dir.glob("*.jar")]
    return sorted((p for p in files if p.is_file()), key=lambda p: p.name)


def _config_label(config: Config, download_dir: Path) -> str:
    """Config source relative to the project root when possible."""
    if config.source is None:
        return config.source_label
    root = download_dir.resolve().parent
    try:
        return str(config.source.resolve().relative_to(root))
    except ValueError:
        return str(config.source)


def render_manifest(
    download_dir: Path,
    resolved_version: str,
    config: Config,
    generated_at: datetime | None = None,
) -> str:
    """Render the manifest text for the current download directory."""
    if generated_at is None:
        generated_at = datetime.now(UTC)

    lines = [
        "# Alfresco Resources Download Manifest",
        f"# Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
        f"# Generated by: alfresco-fetch {__version__} ({__commit__})",
        "#",
        "# This file documents the versions of Alfresco components downloaded.",
        "# Keep this file for reference during troubleshooting.",
        "",
        f"Alfresco Governance Services: {resolved_version}",
        "",
        "Files:",
    ]
    for path in _listed_files(download_dir):
        lines.append(f"  {path.name} ({human_size(path.stat().st_size)})")

    lines += [
        "",
        f"Pinned versions from {_config_label(config, download_dir)}:",
        f"  ALFRESCO_VERSION={config.alfresco_version}",
        f"  USE_LATEST_VERSIONS={str(config.use_latest_versions).lower()}",
    ]
    return "\n".join(lines) + "\n"


def write_manifest(
    download_dir: Path, resolved_version: str, config: Config
) -> Path | None:
    """Write MANIFEST.txt, replacing any previous one.

    Writing is best effort: a failure is logged as a warning and None is
    returned, the download itself has already been verified.
    """
    manifest_path = download_dir / MANIFEST_NAME
    try:
        text = render_manifest(download_dir, resolved_version, config)
        manifest_path.write_text(text)
    except OSError as e:
        log_warn(f"Could not write manifest {manifest_path}: {e}")
        return None
    log_info(f"Created manifest: {manifest_path}")
    return manifest_path
