"""Configuration loading for config/versions.conf files."""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "versions.conf"

# Keys understood in versions.conf and in the environment
CONFIG_KEYS = ("ALFRESCO_VERSION", "USE_LATEST_VERSIONS", "NEXUS_BASE_URL")

_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})

# Versions end up in URLs and file names, so only allow a safe alphabet
_VERSION_PATTERN = re.compile(r"^[0-9A-Za-z][0-9A-Za-z._-]*$")

_ASSIGNMENT = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$")
_TRAILING_COMMENT = re.compile(r"\s+#")


class ConfigError(Exception):
    """Raised when configuration cannot be read."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when config values are invalid."""

    pass


def parse_bool(value: str | bool | None, *, key: str = "value") -> bool:
    """Parse a boolean-like config value.

    Missing and empty values mean False. Anything outside the recognised
    true/false spellings is rejected rather than treated as False.

    Raises:
        ConfigValidationError: If the value is not a recognised boolean
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value

    normalized = str(value).strip().lower()
    if not normalized:
        return False
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigValidationError(
        f"Invalid boolean for {key}: '{value}'. Use 'true' or 'false'."
    )


def _validate_pinned_version(version: Any) -> str:
    if version is None or str(version).strip() == "":
        raise ConfigValidationError(
            "ALFRESCO_VERSION is not set. Add it to config/versions.conf "
            "or export it in the environment."
        )
    version = str(version).strip()
    if not _VERSION_PATTERN.match(version):
        raise ConfigValidationError(f"Invalid ALFRESCO_VERSION '{version}'")
    return version


def _validate_base_url(url: Any) -> str | None:
    if url is None or str(url).strip() == "":
        return None
    url = str(url).strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ConfigValidationError(
            f"NEXUS_BASE_URL must be an http(s) URL, got '{url}'"
        )
    return url


def _unquote(value: str) -> str:
    value = value.strip()
    if value[:1] in ("'", '"'):
        end = value.find(value[0], 1)
        if end != -1:
            # Anything after the closing quote is a comment or whitespace
            return value[1:end]
    return _TRAILING_COMMENT.split(value, maxsplit=1)[0].strip()


def parse_conf(text: str) -> dict[str, str]:
    """Parse shell-style KEY=VALUE assignments.

    Supports blank lines, ``#`` comments, an optional ``export`` prefix and
    single or double quoted values. Lines that are not assignments are
    skipped with a debug message; the file is data, never executed.
    """
    values: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _ASSIGNMENT.match(line)
        if not match:
            logger.debug(f"Ignoring line {lineno}: {raw!r}")
            continue
        key, value = match.groups()
        values[key] = _unquote(value)
    return values


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {path}")
    return {str(k).upper(): v for k, v in data.items()}


@dataclass(frozen=True)
class Config:
    """Pinned versions and repository settings for a download run."""

    alfresco_version: str
    use_latest_versions: bool = False
    nexus_base_url: str | None = None
    source: Path | None = None

    @classmethod
    def from_values(
        cls, values: Mapping[str, Any], *, source: Path | None = None
    ) -> "Config":
        """Build a validated Config from upper-case key/value pairs."""
        return cls(
            alfresco_version=_validate_pinned_version(values.get("ALFRESCO_VERSION")),
            use_latest_versions=parse_bool(
                values.get("USE_LATEST_VERSIONS"), key="USE_LATEST_VERSIONS"
            ),
            nexus_base_url=_validate_base_url(values.get("NEXUS_BASE_URL")),
            source=source,
        )

    @classmethod
    def load(cls, path: Path, env: Mapping[str, str] | None = None) -> "Config":
        """Load config from a versions.conf (or YAML) file.

        Values exported in the environment override the file. The file may
        be absent when the environment provides ALFRESCO_VERSION.

        Raises:
            ConfigError: If the file is missing or unreadable
            ConfigValidationError: If a value is invalid
        """
        if env is None:
            env = os.environ

        values: dict[str, Any] = {}
        source: Path | None = None
        if path.exists():
            try:
                if path.suffix in (".yaml", ".yml"):
                    values = _read_yaml(path)
                else:
                    values = dict(parse_conf(path.read_text()))
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
                raise ConfigError(f"Cannot read {path}: {e}") from e
            source = path
            logger.debug(f"Loaded {sorted(values)} from {path}")
        elif not env.get("ALFRESCO_VERSION"):
            raise ConfigError(
                f"Configuration file not found: {path}. "
                "Create it with ALFRESCO_VERSION=<version>."
            )

        for key in CONFIG_KEYS:
            if env.get(key):
                logger.debug(f"{key} overridden from environment")
                values[key] = env[key]

        return cls.from_values(values, source=source)

    @property
    def source_label(self) -> str:
        """Where the pinned values came from, for display."""
        if self.source is None:
            return "environment"
        return str(self.source)
