"""Partition info command."""

import click
from rich.console import Console
from rich.table import Table

from ..partition import get_partition_info
from . import cli
from .common import dataset_options, format_time, library_errors, open_dataset
from .logger import configure_logging


@cli.command()
@click.argument("table")
@click.argument("partition_id")
@dataset_options
def partition(table: str, partition_id: str, project: str, dataset: str, verbose: bool) -> None:
    """Show creation and modification time of a table partition.

    TABLE is relative to the default dataset unless qualified, and
    PARTITION_ID is the partition ID (e.g., 20230101).
    """
    configure_logging(verbose)
    with library_errors():
        info = get_partition_info(open_dataset(project, dataset), table, partition_id)

    out = Table(show_header=False)
    out.add_column("Field", style="cyan")
    out.add_column("Value")
    out.add_row("Partition", info.partition_id)
    out.add_row("Created", format_time(info.creation_time))
    out.add_row("Last modified", format_time(info.last_modified))
    Console().print(out)
