"""bqext command-line interface."""

from importlib.metadata import PackageNotFoundError, version

import click

from .common import DATASET_ENVVAR, PROJECT_ENVVAR

_PACKAGE_NAME = "mlab-bqext"
_CLIENT_PACKAGE_NAME = "google-cloud-bigquery"


def _get_version(package: str = _PACKAGE_NAME) -> str:
    """Return the installed version of a package, or "unknown"."""
    try:
        return version(package)
    except PackageNotFoundError:
        return "unknown"


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s", package_name=_PACKAGE_NAME)
def cli() -> None:
    """BigQuery extensions: partition info, table stats, and partition dedup.

    Unqualified table names resolve against --project and --dataset, which
    default to the BQEXT_PROJECT and BQEXT_DATASET environment variables.
    """


@cli.command(hidden=True)
def help() -> None:
    """Show usage information."""
    click.echo('Use "bqext --help" for usage information.')
    click.echo('Use "bqext <command> --help" for help on a specific command.')
    click.echo(f"Set {PROJECT_ENVVAR} and {DATASET_ENVVAR} to skip --project and --dataset.")


@cli.command("version")
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Also print the BigQuery client library version.",
)
def version_cmd(verbose: bool) -> None:
    """Print the version number."""
    click.echo(_get_version())
    if verbose:
        click.echo(f"{_CLIENT_PACKAGE_NAME} {_get_version(_CLIENT_PACKAGE_NAME)}")


# Register subcommands (must be after cli is defined)
from . import dedup as _dedup  # noqa: E402, F401
from . import partition as _partition  # noqa: E402, F401
from . import table as _table  # noqa: E402, F401
from . import workflow as _workflow  # noqa: E402, F401
from . import workflow_run as _workflow_run  # noqa: E402, F401
