"""Click commands for kubesnap.

``kubesnap run`` starts the refresh loop until SIGTERM/SIGINT.
``kubesnap snapshot`` runs one full sync cycle and prints the snapshot as
JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import sys

import click

from kubesnap import __version__
from kubesnap.app import KubeSnapApp, _ComponentError, main
from kubesnap.config import load_config, parse_group_by, validate_namespace
from kubesnap.models.config import KubeSnapConfig


def _override(
    config: KubeSnapConfig,
    namespace: str | None,
    group_by: str | None,
    context: str | None,
) -> KubeSnapConfig:
    """Apply command-line options on top of the environment configuration."""
    selection = config.selection
    if namespace is not None:
        selection = dataclasses.replace(selection, namespace=validate_namespace(namespace))
    if group_by is not None:
        selection = dataclasses.replace(selection, group_by=parse_group_by(group_by))
    cluster = config.cluster
    if context is not None:
        cluster = dataclasses.replace(cluster, context=context.strip())
    return dataclasses.replace(config, selection=selection, cluster=cluster)


async def _snapshot_once(config: KubeSnapConfig) -> dict:
    app = KubeSnapApp(config)
    try:
        await app.setup()
        assert app.orchestrator is not None and app.state is not None
        await app.orchestrator.sync_all()
        snapshot = await app.state.snapshot()
        return snapshot.to_dict()
    finally:
        await app.stop()


@click.group()
@click.version_option(__version__, prog_name="kubesnap")
def cli() -> None:
    """Read-only Kubernetes resource and utilization snapshots."""


@cli.command()
def run() -> None:
    """Sync continuously until interrupted."""
    asyncio.run(main())


@cli.command()
@click.option("--namespace", "-n", default=None, help="Namespace to scope namespaced kinds to (default: all).")
@click.option("--group-by", "-g", default=None, help="Comma separated utilization qualifiers, e.g. 'resource,node'.")
@click.option("--context", default=None, help="kubeconfig context to use.")
@click.option("--indent", default=2, show_default=True, help="JSON indentation.")
def snapshot(namespace: str | None, group_by: str | None, context: str | None, indent: int) -> None:
    """Run one sync cycle and print the snapshot as JSON."""
    try:
        config = _override(load_config(), namespace, group_by, context)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    try:
        payload = asyncio.run(_snapshot_once(config))
    except _ComponentError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(json.dumps(payload, indent=indent or None))
