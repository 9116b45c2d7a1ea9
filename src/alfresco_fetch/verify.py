"""Post-download verification of the download directory."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .console import log_error, log_info
from .downloads import archive_name, check_archive, get_artifact, human_size

logger = logging.getLogger(__name__)

# Archive suffixes self-tested on every run; jars are zip containers
_ARCHIVE_KINDS = (("*.zip", "ZIP"), ("*.jar", "JAR"))


@dataclass
class VerificationReport:
    """Outcome of one verification pass."""

    checked: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    def fail(self, message: str) -> None:
        log_error(message)
        self.errors.append(message)


def expected_files(
    download_dir: Path, version: str, artifact_keys: tuple[str, ...]
) -> list[Path]:
    """Files a successful run must leave in download_dir."""
    paths = []
    for key in artifact_keys:
        meta = get_artifact(key)
        extension = meta.get("extension", "zip")
        paths.append(download_dir / archive_name(meta["artifact"], version, extension))
    return paths


def verify_downloads(
    download_dir: Path,
    version: str,
    *,
    artifact_keys: tuple[str, ...] = ("governance_distribution",),
) -> VerificationReport:
    """Check expected files and self-test every archive in download_dir.

    CONTRACT:
      Inputs:
        - download_dir: the download directory
        - version: resolved version of this run

      Outputs:
        - VerificationReport listing every problem found

      Invariants:
        - Never short-circuits: all files are checked and all errors reported
        - Each missing/empty expected file counts as one error
        - Each *.zip and *.jar failing its self-test counts as one error,
          including archives left by earlier runs
    """
    report = VerificationReport()

    for path in expected_files(download_dir, version, artifact_keys):
        if path.is_file() and path.stat().st_size > 0:
            log_info(f"{path.name} ({human_size(path.stat().st_size)})")
        else:
            report.fail(f"Missing or empty: {path.name}")

    log_info("")
    log_info("Validating archive integrity...")

    for pattern, kind in _ARCHIVE_KINDS:
        for path in sorted(download_dir.glob(pattern)):
            if not path.is_file():
                continue
            report.checked.append(path)
            if check_archive(path):
                log_info(f"Valid {kind}: {path.name}")
            else:
                report.fail(f"Corrupt {kind}: {path.name}")

    logger.debug(
        f"Verified {len(report.checked)} archives, {report.error_count} error(s)"
    )
    return report
