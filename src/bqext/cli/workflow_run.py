"""Workflow run command."""

from dataclasses import dataclass
from pathlib import Path

import click
import dacite
import yaml
from rich import get_console
from rich.panel import Panel

from ..dataset import Dataset
from ..partition import DedupRequest, dedup, dedup_request_for
from ..scripting import bq_exception, bq_logging
from .workflow import workflow


@dataclass(frozen=True, kw_only=True)
class DedupEntry:
    source: str
    key: str
    destination: str
    overwrite: bool = False


@dataclass(frozen=True, kw_only=True)
class WorkflowConfig:
    version: int
    project: str
    dataset: str
    dedup: list[DedupEntry]


def load_workflow_config(config_path: Path) -> tuple[Dataset, list[DedupRequest]]:
    """Load the workflow from YAML and return the dataset and the dedup requests."""
    try:
        content = config_path.read_text()
    except FileNotFoundError as exc:
        raise click.ClickException(f"Workflow file not found: {config_path}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise click.ClickException("Workflow file must be a mapping.")

    try:
        config = dacite.from_dict(WorkflowConfig, data, config=dacite.Config(strict=True))
    except dacite.DaciteError as exc:
        raise click.ClickException(f"Invalid workflow file: {exc}") from exc

    if config.version != 0:
        raise click.ClickException(f"Unsupported workflow file version: {config.version}")

    if not config.dedup:
        raise click.ClickException("Workflow file must include non-empty dedup entries.")

    dataset = Dataset(config.project, config.dataset)
    requests = []
    for entry in config.dedup:
        try:
            requests.append(
                dedup_request_for(
                    entry.source,
                    entry.key,
                    entry.destination,
                    dataset.context,
                    overwrite=entry.overwrite,
                )
            )
        except ValueError as exc:
            raise click.ClickException(f"Invalid dedup entry: {exc}") from exc

    return dataset, requests


@workflow.command()
@click.option(
    "-f",
    "--file",
    "workflow_file",
    required=True,
    metavar="WORKFLOW",
    help="Path to YAML workflow file",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Stop waiting for each job after this many seconds",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
def run(workflow_file: str, timeout: float | None, verbose: bool) -> None:
    """Run all the dedup entries of a workflow file.

    We continue after a failed entry and exit with 1 if any failed.
    """
    console = get_console()
    bq_logging.configure(verbose=verbose)
    dataset, requests = load_workflow_config(Path(workflow_file))
    interceptor = bq_exception.Interceptor()

    for request in requests:
        console.print(Panel(f"Dedup {request.source_table} → {request.destination}"))
        with interceptor:
            dedup(dataset, request, timeout=timeout)

    raise SystemExit(interceptor.exitcode())
