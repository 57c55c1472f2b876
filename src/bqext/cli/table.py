"""Table info command."""

import click
from rich.console import Console
from rich.table import Table

from . import cli
from .common import dataset_options, format_bytes, format_time, library_errors, open_dataset
from .logger import configure_logging


@cli.command()
@click.argument("table")
@dataset_options
def table(table: str, project: str, dataset: str, verbose: bool) -> None:
    """Show the critical stats of TABLE."""
    configure_logging(verbose)
    with library_errors():
        info = open_dataset(project, dataset).get_table_info(table)

    out = Table(show_header=False)
    out.add_column("Field", style="cyan")
    out.add_column("Value")
    out.add_row("Table", info.name)
    out.add_row("Partitioned", "yes" if info.is_partitioned else "no")
    out.add_row("Rows", "-" if info.num_rows is None else f"{info.num_rows:,}")
    out.add_row("Size", format_bytes(info.num_bytes))
    out.add_row("Created", format_time(info.creation_time))
    out.add_row("Last modified", format_time(info.last_modified_time))
    Console().print(out)
