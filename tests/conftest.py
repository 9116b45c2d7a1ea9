"""Shared fixtures for alfresco_fetch tests."""

import zipfile
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from alfresco_fetch.config import Config

ARTIFACT = "alfresco-governance-services-community-distribution"


def archive_path(directory: Path, version: str) -> Path:
    """Path of the distribution archive for version in directory."""
    return directory / f"{ARTIFACT}-{version}.zip"


def write_zip(path: Path, members: dict[str, bytes]) -> Path:
    """Write a zip archive containing members (name -> content)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return path


def zip_bytes(tmp_path: Path, members: dict[str, bytes]) -> bytes:
    """Bytes of a zip archive containing members."""
    return write_zip(tmp_path / "_payload.zip", members).read_bytes()


def fake_response(
    status_code: int = 200,
    chunks: list[bytes] | None = None,
    text: str = "",
    headers: dict[str, str] | None = None,
) -> MagicMock:
    """A requests.Response stand-in usable as a context manager."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    response.iter_content.return_value = iter(chunks or [])
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    return response


@pytest.fixture
def pinned_config() -> Config:
    """Config pinned to 23.1 without latest lookup."""
    return Config(alfresco_version="23.1", use_latest_versions=False)


@pytest.fixture
def latest_config() -> Config:
    """Config pinned to 23.1 with latest lookup enabled."""
    return Config(alfresco_version="23.1", use_latest_versions=True)


@pytest.fixture
def download_dir(tmp_path: Path) -> Path:
    """An existing, empty download directory."""
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def make_zip() -> Callable[[Path, dict[str, bytes]], Path]:
    """Factory writing zip archives."""
    return write_zip


@pytest.fixture
def system_tmp(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Keep extraction directories out of the real system temp dir."""
    temp_root = tmp_path_factory.mktemp("systemp")
    monkeypatch.setattr("tempfile.tempdir", str(temp_root))
    return temp_root


def write_unsupported_zip(path: Path) -> Path:
    """Write a zip whose member claims compression method 9 (deflate64).

    zipfile can list such an archive but cannot read the member back.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_STORED) as zf:
        zf.writestr("README.txt", b"readme")
    data = bytearray(path.read_bytes())
    local = data.find(b"PK\x03\x04")
    central = data.find(b"PK\x01\x02")
    data[local + 8 : local + 10] = (9).to_bytes(2, "little")
    data[central + 10 : central + 12] = (9).to_bytes(2, "little")
    path.write_bytes(bytes(data))
    return path
