"""Dedup command."""

import click

from ..partition import dedup as dedup_table
from ..partition import dedup_request_for
from . import cli
from .common import dataset_options, library_errors, open_dataset
from .logger import configure_logging


@cli.command()
@click.argument("source")
@click.argument("destination")
@click.option("-k", "--key", required=True, help="Column identifying duplicate rows")
@click.option("--overwrite", is_flag=True, help="Replace the destination partition content")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Stop waiting after this many seconds (the job keeps running)",
)
@dataset_options
def dedup(
    source: str,
    destination: str,
    key: str,
    overwrite: bool,
    timeout: float | None,
    project: str,
    dataset: str,
    verbose: bool,
) -> None:
    """Remove duplicate rows of SOURCE and write them to DESTINATION.

    DESTINATION must include the partition, for example
    `project.dataset.table$20230101`, otherwise we refuse to write.
    """
    configure_logging(verbose)
    ds = open_dataset(project, dataset)
    with library_errors():
        request = dedup_request_for(source, key, destination, ds.context, overwrite=overwrite)
        status = dedup_table(ds, request, timeout=timeout)
    click.echo(f"job {status.job_id}: {status.state}")
