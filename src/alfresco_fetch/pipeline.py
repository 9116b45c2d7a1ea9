"""Download pipeline: resolve, fetch, extract, verify, record.

Each stage takes a PipelineContext and returns a new one; nothing is shared
between stages except through the context.
"""

import dataclasses
import importlib.util
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import requests

from . import __version__
from .config import Config
from .console import log_error, log_info, log_step
from .downloads import IntegrityError, TransferError, artifact_target, download_file
from .extract import ExtractionResult
from .extract import extract_distribution as _extract_archive
from .manifest import write_manifest
from .verify import VerificationReport, verify_downloads
from .versions import resolve_version

logger = logging.getLogger(__name__)

DOWNLOAD_DIR_NAME = "downloads"
DISTRIBUTION = "governance_distribution"


class PreflightError(Exception):
    """Raised when the environment cannot run the pipeline."""

    pass


@dataclass(frozen=True)
class PipelineContext:
    """State handed from one pipeline stage to the next."""

    config: Config
    root: Path
    download_dir: Path
    version: str | None = None
    extraction: ExtractionResult | None = None

    @classmethod
    def create(cls, config: Config, root: Path) -> "PipelineContext":
        return cls(config=config, root=root, download_dir=root / DOWNLOAD_DIR_NAME)

    @property
    def resolved_version(self) -> str:
        if self.version is None:
            raise RuntimeError("Version has not been resolved yet")
        return self.version


def create_session() -> requests.Session:
    """HTTP session shared by the listing lookup and the download."""
    session = requests.Session()
    session.headers["User-Agent"] = f"alfresco-fetch/{__version__}"
    return session


def _nearest_existing(path: Path) -> Path:
    path = path.absolute()
    while not path.exists() and path != path.parent:
        path = path.parent
    return path


def check_prerequisites(root: Path) -> None:
    """Fail fast before any network activity.

    Deflated archives cannot be read without zlib, and the download
    directory must be creatable under root.

    Raises:
        PreflightError: If a requirement is missing
    """
    if importlib.util.find_spec("zlib") is None:
        raise PreflightError(
            "Python was built without zlib; zip archives cannot be read."
        )

    existing = _nearest_existing(root)
    if not existing.is_dir():
        raise PreflightError(f"Not a directory: {existing}")
    if not os.access(existing, os.W_OK | os.X_OK):
        raise PreflightError(f"Permission denied: cannot write to {existing}")


def ensure_download_directory(path: Path) -> None:
    """Create path (and parents) if missing; an existing directory is left alone.

    Raises:
        PreflightError: If the directory cannot be created
    """
    if path.is_dir():
        log_info(f"Download directory exists: {path}")
        return
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PreflightError(f"Cannot create download directory {path}: {e}") from e
    log_info(f"Created directory: {path}")


def determine_versions(
    ctx: PipelineContext, *, session: requests.Session | None = None
) -> PipelineContext:
    log_step("Determining component versions...")
    version = resolve_version(ctx.config, artifact_key=DISTRIBUTION, session=session)
    log_info(f"Alfresco Governance Services: {version}")
    return dataclasses.replace(ctx, version=version)


def create_download_directory(ctx: PipelineContext) -> PipelineContext:
    log_step("Creating download directory...")
    ensure_download_directory(ctx.download_dir)
    return ctx


def download_distribution(
    ctx: PipelineContext, *, session: requests.Session | None = None
) -> PipelineContext:
    """Fetch the governance services distribution archive.

    Raises:
        TransferError: If the archive could not be downloaded
    """
    log_step("Downloading Alfresco Governance Services Community Distribution...")
    target = artifact_target(
        DISTRIBUTION,
        ctx.resolved_version,
        ctx.download_dir,
        base_url=ctx.config.nexus_base_url,
    )
    if not download_file(
        target.url, target.destination, target.description, session=session
    ):
        raise TransferError(f"Failed to download {target.description}")
    return ctx


def extract_distribution(ctx: PipelineContext) -> PipelineContext:
    """Unpack the distribution archive.

    An archive that cannot be extracted is reported through the same
    verification as every other archive, so the operator sees all damaged
    files at once along with the remediation advice.

    Raises:
        MissingArtifactError: If no distribution archive is present
        IntegrityError: If the archive cannot be extracted
    """
    log_step("Extracting Governance distribution...")
    try:
        extraction = _extract_archive(
            ctx.download_dir, ctx.resolved_version, artifact_key=DISTRIBUTION
        )
    except IntegrityError as e:
        log_error(str(e))
        log_step("Verifying downloaded files...")
        report = _check_downloads(ctx)
        raise IntegrityError(_integrity_failure(max(report.error_count, 1))) from e
    return dataclasses.replace(ctx, extraction=extraction)


def _check_downloads(ctx: PipelineContext) -> VerificationReport:
    return verify_downloads(
        ctx.download_dir, ctx.resolved_version, artifact_keys=(DISTRIBUTION,)
    )


def _integrity_failure(error_count: int) -> str:
    return (
        f"Verification failed with {error_count} error(s). "
        "Try deleting the corrupt files and running this command again."
    )


def verify(ctx: PipelineContext) -> PipelineContext:
    """Verify downloads and record the manifest.

    Raises:
        IntegrityError: With the error count, after every check has run
    """
    log_step("Verifying downloaded files...")
    report = _check_downloads(ctx)
    if not report.ok:
        raise IntegrityError(_integrity_failure(report.error_count))

    write_manifest(ctx.download_dir, ctx.resolved_version, ctx.config)
    log_info("")
    log_info("All downloads verified successfully")
    return ctx


def run(
    config: Config, root: Path, *, session: requests.Session | None = None
) -> PipelineContext:
    """Run every stage in order and return the final context.

    CONTRACT:
      Inputs:
        - config: loaded Config
        - root: project root; downloads go to root/downloads

      Outputs:
        - final PipelineContext with version and extraction set

      Invariants:
        - Stages run strictly in order, each to completion
        - No network access happens before the preflight check passes
        - A failed stage raises and no later stage runs

    Raises:
        PreflightError, TransferError, MissingArtifactError, IntegrityError
    """
    log_step("Starting Alfresco resources download...")
    check_prerequisites(root)

    ctx = PipelineContext.create(config, root)
    ctx = determine_versions(ctx, session=session)
    ctx = create_download_directory(ctx)
    ctx = download_distribution(ctx, session=session)
    ctx = extract_distribution(ctx)
    ctx = verify(ctx)

    log_info("All Alfresco resources downloaded successfully!")
    logger.debug(f"Final context: {ctx}")
    return ctx
