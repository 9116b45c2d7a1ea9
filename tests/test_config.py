"""Tests for alfresco_fetch.config module."""

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from alfresco_fetch.config import (
    Config,
    ConfigError,
    ConfigValidationError,
    parse_bool,
    parse_conf,
)


class TestParseBool:
    """Tests for parse_bool()."""

    @pytest.mark.parametrize("value", ["true", "TRUE", "True", "yes", "1", "on"])
    def test_true_spellings(self, value: str) -> None:
        """Recognised true spellings parse as True."""
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "FALSE", "no", "0", "off"])
    def test_false_spellings(self, value: str) -> None:
        """Recognised false spellings parse as False."""
        assert parse_bool(value) is False

    def test_missing_is_false(self) -> None:
        """None and empty strings default to False."""
        assert parse_bool(None) is False
        assert parse_bool("") is False
        assert parse_bool("   ") is False

    def test_passes_through_booleans(self) -> None:
        """YAML booleans are accepted as-is."""
        assert parse_bool(True) is True
        assert parse_bool(False) is False

    def test_rejects_unrecognised_value(self) -> None:
        """Unknown values raise instead of silently meaning False."""
        with pytest.raises(ConfigValidationError, match="USE_LATEST_VERSIONS"):
            parse_bool("treu", key="USE_LATEST_VERSIONS")

    @given(
        value=st.text(min_size=1).filter(
            lambda s: s.strip().lower()
            not in {"", "true", "yes", "1", "on", "false", "no", "0", "off"}
        )
    )
    def test_anything_else_is_rejected(self, value: str) -> None:
        """Property: every unrecognised non-blank value is rejected."""
        with pytest.raises(ConfigValidationError):
            parse_bool(value)


class TestParseConf:
    """Tests for parse_conf()."""

    def test_parses_assignments(self) -> None:
        """Plain KEY=VALUE lines are read."""
        values = parse_conf("ALFRESCO_VERSION=23.1\nUSE_LATEST_VERSIONS=false\n")

        assert values == {"ALFRESCO_VERSION": "23.1", "USE_LATEST_VERSIONS": "false"}

    def test_skips_comments_and_blank_lines(self) -> None:
        """Comment and blank lines are ignored."""
        text = "# Pinned versions\n\n   # indented comment\nALFRESCO_VERSION=23.1\n"

        assert parse_conf(text) == {"ALFRESCO_VERSION": "23.1"}

    def test_strips_quotes(self) -> None:
        """Single and double quoted values are unquoted."""
        text = "ALFRESCO_VERSION=\"23.2\"\nNEXUS_BASE_URL='https://repo.example'\n"

        values = parse_conf(text)

        assert values["ALFRESCO_VERSION"] == "23.2"
        assert values["NEXUS_BASE_URL"] == "https://repo.example"

    def test_accepts_export_prefix(self) -> None:
        """Lines written for `source` with export are understood."""
        assert parse_conf("export ALFRESCO_VERSION=23.1") == {
            "ALFRESCO_VERSION": "23.1"
        }

    def test_strips_trailing_comment_on_unquoted_value(self) -> None:
        """An unquoted value may be followed by a comment."""
        assert parse_conf("ALFRESCO_VERSION=23.1  # LTS") == {
            "ALFRESCO_VERSION": "23.1"
        }

    @pytest.mark.parametrize(
        "line",
        [
            'ALFRESCO_VERSION="23.1"  # pinned',
            "ALFRESCO_VERSION='23.1' # pinned",
            'ALFRESCO_VERSION="23.1"\t# pinned',
            "ALFRESCO_VERSION=23.1\t# pinned",
        ],
    )
    def test_strips_comment_after_quoted_value(self, line: str) -> None:
        """A quoted value followed by a comment loses both quotes and comment."""
        assert parse_conf(line) == {"ALFRESCO_VERSION": "23.1"}

    def test_quoted_value_keeps_hash(self) -> None:
        """A hash inside quotes is part of the value."""
        assert parse_conf('NEXUS_BASE_URL="https://repo.example/#x"') == {
            "NEXUS_BASE_URL": "https://repo.example/#x"
        }

    def test_quoted_value_with_comment_loads(self, tmp_path: Path) -> None:
        """A commented, quoted version passes validation."""
        path = tmp_path / "versions.conf"
        path.write_text('ALFRESCO_VERSION="23.1"  # pinned\n')

        config = Config.load(path, env={})

        assert config.alfresco_version == "23.1"

    def test_ignores_non_assignments(self) -> None:
        """Shell statements that are not assignments are skipped, not run."""
        text = 'echo "hello"\nALFRESCO_VERSION=23.1\n'

        assert parse_conf(text) == {"ALFRESCO_VERSION": "23.1"}


class TestConfigLoad:
    """Tests for Config.load()."""

    def test_loads_conf_file(self, tmp_path: Path) -> None:
        """Values are read from a versions.conf file."""
        path = tmp_path / "versions.conf"
        path.write_text("ALFRESCO_VERSION=23.1\nUSE_LATEST_VERSIONS=true\n")

        config = Config.load(path, env={})

        assert config.alfresco_version == "23.1"
        assert config.use_latest_versions is True
        assert config.nexus_base_url is None
        assert config.source == path

    def test_use_latest_defaults_to_false(self, tmp_path: Path) -> None:
        """USE_LATEST_VERSIONS is optional."""
        path = tmp_path / "versions.conf"
        path.write_text("ALFRESCO_VERSION=23.1\n")

        config = Config.load(path, env={})

        assert config.use_latest_versions is False

    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        """YAML files with lower-case keys are supported."""
        path = tmp_path / "versions.yaml"
        path.write_text(
            'alfresco_version: "23.4"\n'
            "use_latest_versions: true\n"
            "nexus_base_url: https://mirror.example/nexus/\n"
        )

        config = Config.load(path, env={})

        assert config.alfresco_version == "23.4"
        assert config.use_latest_versions is True
        assert config.nexus_base_url == "https://mirror.example/nexus"

    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        """Exported variables win over file values."""
        path = tmp_path / "versions.conf"
        path.write_text("ALFRESCO_VERSION=23.1\nUSE_LATEST_VERSIONS=false\n")

        config = Config.load(
            path, env={"ALFRESCO_VERSION": "23.2", "USE_LATEST_VERSIONS": "true"}
        )

        assert config.alfresco_version == "23.2"
        assert config.use_latest_versions is True

    def test_missing_file_with_environment(self, tmp_path: Path) -> None:
        """The file may be absent when the environment pins the version."""
        config = Config.load(
            tmp_path / "missing.conf", env={"ALFRESCO_VERSION": "23.1"}
        )

        assert config.alfresco_version == "23.1"
        assert config.source is None
        assert config.source_label == "environment"

    def test_missing_file_without_environment(self, tmp_path: Path) -> None:
        """A missing file and no environment is an error."""
        with pytest.raises(ConfigError, match="not found"):
            Config.load(tmp_path / "missing.conf", env={})

    def test_missing_version_raises(self, tmp_path: Path) -> None:
        """ALFRESCO_VERSION is required."""
        path = tmp_path / "versions.conf"
        path.write_text("USE_LATEST_VERSIONS=true\n")

        with pytest.raises(ConfigValidationError, match="ALFRESCO_VERSION"):
            Config.load(path, env={})

    def test_invalid_boolean_raises(self, tmp_path: Path) -> None:
        """Unrecognised USE_LATEST_VERSIONS values are rejected."""
        path = tmp_path / "versions.conf"
        path.write_text("ALFRESCO_VERSION=23.1\nUSE_LATEST_VERSIONS=maybe\n")

        with pytest.raises(ConfigValidationError, match="maybe"):
            Config.load(path, env={})

    @pytest.mark.parametrize("version", ["23.1/../..", "23 1", "-23.1", "23.1;rm"])
    def test_unsafe_version_raises(self, tmp_path: Path, version: str) -> None:
        """Versions with characters unsafe in URLs or file names are rejected."""
        path = tmp_path / "versions.conf"
        path.write_text(f'ALFRESCO_VERSION="{version}"\n')

        with pytest.raises(ConfigValidationError, match="Invalid ALFRESCO_VERSION"):
            Config.load(path, env={})

    def test_non_http_base_url_raises(self, tmp_path: Path) -> None:
        """NEXUS_BASE_URL must be an http(s) URL."""
        path = tmp_path / "versions.conf"
        path.write_text("ALFRESCO_VERSION=23.1\nNEXUS_BASE_URL=ftp://repo\n")

        with pytest.raises(ConfigValidationError, match="NEXUS_BASE_URL"):
            Config.load(path, env={})

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        """A YAML file that is not a mapping is reported."""
        path = tmp_path / "versions.yml"
        path.write_text("- 23.1\n")

        with pytest.raises(ConfigError, match="mapping"):
            Config.load(path, env={})

    def test_config_is_immutable(self, tmp_path: Path) -> None:
        """Config cannot be changed after loading."""
        config = Config(alfresco_version="23.1")

        with pytest.raises(AttributeError):
            config.alfresco_version = "23.2"  # type: ignore[misc]
