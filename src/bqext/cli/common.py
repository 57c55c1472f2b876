"""Options and helpers shared by the bqext commands."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import click
from google.api_core.exceptions import GoogleAPIError

from ..dataset import Dataset
from ..errors import BQExtError

PROJECT_ENVVAR = "BQEXT_PROJECT"
DATASET_ENVVAR = "BQEXT_DATASET"


def dataset_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Add the --project, --dataset, and --verbose options to a command."""
    func = click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")(func)
    func = click.option(
        "--dataset",
        envvar=DATASET_ENVVAR,
        required=True,
        help=f"Default dataset for unqualified tables (env: {DATASET_ENVVAR})",
    )(func)
    func = click.option(
        "--project",
        envvar=PROJECT_ENVVAR,
        required=True,
        help=f"Project owning the dataset and billed for queries (env: {PROJECT_ENVVAR})",
    )(func)
    return func


def open_dataset(project: str, dataset: str) -> Dataset:
    """Return the Dataset handle for the command line options."""
    return Dataset(project, dataset)


@contextmanager
def library_errors() -> Iterator[None]:
    """Convert library and BigQuery errors to click.ClickException."""
    try:
        yield
    except BQExtError as exc:
        raise click.ClickException(str(exc)) from exc
    except GoogleAPIError as exc:
        raise click.ClickException(f"BigQuery error: {exc}") from exc
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def format_time(value: datetime | None) -> str:
    """Format an optional timestamp for display."""
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%dT%H:%M:%S%z")


def format_bytes(n: int | None) -> str:
    """Format an optional byte count using SI-like suffixes."""
    if n is None:
        return "-"
    value = float(n)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(value) < 1024:
            if value == int(value):
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} PB"
