"""Main CLI entry point for alfresco-fetch."""

import logging
import signal
from importlib.metadata import version
from pathlib import Path

import click

from . import pipeline
from .config import DEFAULT_CONFIG_PATH, Config, ConfigError
from .console import log_error
from .downloads import DownloadMetadataError, IntegrityError, TransferError
from .extract import MissingArtifactError
from .pipeline import PreflightError

# Every failure the pipeline reports on purpose; anything else is a bug
_FATAL_ERRORS = (
    ConfigError,
    DownloadMetadataError,
    PreflightError,
    TransferError,
    MissingArtifactError,
    IntegrityError,
)


def _sigint_handler(signum: int, frame: object) -> None:
    """Handle SIGINT (CTRL+C) gracefully.

    Prints a message and raises KeyboardInterrupt so open files and
    context managers are closed on the way out.
    """
    click.echo("\nInterrupted.", err=True)
    raise KeyboardInterrupt


@click.command()
@click.version_option(
    version=version("alfresco-fetch"),
    prog_name="alfresco-fetch",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Project root; archives are stored in ROOT/downloads",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Versions file [default: ROOT/{DEFAULT_CONFIG_PATH}]",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable verbose output for version lookup, download and extraction",
)
def main(root: Path, config_path: Path | None, debug: bool = False) -> None:
    """alfresco-fetch - Download and verify the Alfresco Governance Services
    community distribution.

    Reads ALFRESCO_VERSION and USE_LATEST_VERSIONS from config/versions.conf
    (or the environment), downloads the distribution archive, extracts it to
    a temporary directory and writes downloads/MANIFEST.txt.
    """
    signal.signal(signal.SIGINT, _sigint_handler)

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="[DEBUG] %(name)s: %(message)s",
        )

    if config_path is None:
        config_path = root / DEFAULT_CONFIG_PATH

    try:
        config = Config.load(config_path)
        with pipeline.create_session() as session:
            ctx = pipeline.run(config, root, session=session)
    except _FATAL_ERRORS as e:
        log_error(str(e))
        raise SystemExit(1) from None
    except KeyboardInterrupt:
        click.echo("\nDownload cancelled.", err=True)
        raise SystemExit(130) from None

    if ctx.extraction is not None:
        click.echo(f"\nDistribution ready at {ctx.extraction.dist_root}")


if __name__ == "__main__":
    main()
