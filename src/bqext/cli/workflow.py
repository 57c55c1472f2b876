"""Workflow command group."""

from . import cli


@cli.group()
def workflow() -> None:
    """Run batches of operations described in YAML files."""
