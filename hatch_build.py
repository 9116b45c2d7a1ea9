"""Hatch build hook to embed the git commit recorded in MANIFEST.txt."""

import subprocess
from pathlib import Path

from hatchling.builders.hooks.plugin.interface import BuildHookInterface


def get_git_commit() -> str:
    """Get the current git commit hash."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        return "unknown"


class BuildInfoHook(BuildHookInterface):
    """Build hook that generates alfresco_fetch/_build_info.py."""

    PLUGIN_NAME = "build-info"

    def initialize(self, version: str, build_data: dict) -> None:
        """Write _build_info.py before build; editable installs skip it."""
        if version == "editable":
            return
        commit = get_git_commit()
        package_dir = Path(self.root) / "src" / "alfresco_fetch"
        build_info_path = package_dir / "_build_info.py"
        build_info_path.write_text(f'__commit__ = "{commit}"\n')

        if "force_include" not in build_data:
            build_data["force_include"] = {}
        build_data["force_include"][str(build_info_path)] = (
            "alfresco_fetch/_build_info.py"
        )
