"""alfresco-fetch - Download and verify Alfresco distribution archives."""

import subprocess
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

try:
    __version__ = version("alfresco-fetch")
except PackageNotFoundError:
    __version__ = "0.0.0"

try:
    from ._build_info import __commit__
except ImportError:
    # Development mode - read from git
    def _get_git_commit() -> str:
        repo_root = Path(__file__).parent.parent.parent
        try:
            result = subprocess.run(
                ["git", "rev-parse", "--short", "HEAD"],
                cwd=repo_root,
                capture_output=True,
                text=True,
                check=True,
            )
            return result.stdout.strip()
        except (subprocess.CalledProcessError, FileNotFoundError):
            return "unknown"

    __commit__ = _get_git_commit()
