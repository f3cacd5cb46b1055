"""
knotwork CLI - Main entry point.

Provides commands for:
- Running a flow once and reporting per-node results
- Serving a flow behind its serverTrigger node
- Listing discovered flows and known node types
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click

from knotwork.config import get_settings
from knotwork.observability import setup_logging


logger = logging.getLogger("knotwork")

OUTPUT_PREVIEW_CHARS = 120


def discover_flows(search_dirs: Sequence[str]) -> List[Path]:
    """*.json files directly inside the search directories, without duplicates."""
    flows: List[Path] = []
    seen = set()
    for directory in search_dirs:
        path = Path(directory)
        if not path.is_dir():
            continue
        for candidate in sorted(path.glob("*.json")):
            key = candidate.resolve()
            if candidate.is_file() and key not in seen:
                seen.add(key)
                flows.append(candidate)
    return flows


def _preview(value: object) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    if len(text) > OUTPUT_PREVIEW_CHARS:
        return text[:OUTPUT_PREVIEW_CHARS] + "..."
    return text


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Suppress output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool):
    """knotwork - Run node/edge API automation flows."""
    ctx.ensure_object(dict)

    setup_logging(stream=sys.stderr)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger().setLevel(logging.ERROR)

    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# ==============================================================================
# Run
# ==============================================================================

@cli.command("run")
@click.option(
    "--file", "-f", "flow_file",
    type=click.Path(dir_okay=False),
    help="Path to the flow JSON file",
)
@click.option(
    "--env", "-e", "env_file",
    type=click.Path(dir_okay=False),
    help="Path to an environment JSON file seeding the variables",
)
@click.option("--json", "as_json", is_flag=True, help="Print the full run result as JSON")
def run_command(flow_file: Optional[str], env_file: Optional[str], as_json: bool):
    """
    Execute a flow once.

    Without --file, the configured search directories are scanned; a
    single flow found there is run.

    Examples:

        knotwork run --file ./flows/login.json --env ./env.json
    """
    from knotwork.workflow_runtime import (
        FlowLoadError,
        WorkflowExecutor,
        load_environment,
        load_flow,
    )

    settings = get_settings()

    if flow_file:
        flow_path = Path(flow_file)
    else:
        flows = discover_flows(settings.flow_search_dirs)
        if not flows:
            click.echo("Error: No .json flows found; pass --file", err=True)
            sys.exit(1)
        if len(flows) > 1:
            click.echo("Several flows found, choose one with --file:", err=True)
            for path in flows:
                click.echo(f"  {path}", err=True)
            sys.exit(1)
        flow_path = flows[0]

    try:
        flow = load_flow(flow_path)
        variables = load_environment(env_file) if env_file else {}
    except FlowLoadError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    run = WorkflowExecutor().execute(flow, initial_variables=variables)

    if as_json:
        click.echo(json.dumps(run.to_dict(), indent=2, default=str))
    else:
        click.echo(f"Flow: {flow_path}")
        click.echo(f"Nodes: {len(flow.nodes)}")
        click.echo(f"Duration: {run.duration_ms:.2f}ms\n")

        for node_id, result in run.results.items():
            status_icon = "✗" if result.is_error else "✓"
            click.echo(f"  {status_icon} {node_id}: {result.status.value}")
            if result.is_error:
                click.echo(f"      Error: {result.error}")
            else:
                click.echo(f"      Output: {_preview(result.output)}")

        for node_id, count in run.skipped_visits.items():
            click.echo(f"  ! {node_id}: dropped {count} visits over the limit")

    if run.has_errors:
        sys.exit(1)


# ==============================================================================
# Serve
# ==============================================================================

@cli.command("serve")
@click.option(
    "--file", "-f", "flow_file",
    required=True,
    type=click.Path(dir_okay=False),
    help="Path to the flow JSON file",
)
@click.option("--host", default=None, help="Bind host (default from settings)")
@click.option("--port", type=int, default=None, help="Port (default from the serverTrigger node)")
def serve_command(flow_file: str, host: Optional[str], port: Optional[int]):
    """
    Serve a flow behind its serverTrigger node.

    Each request runs the flow once; the serverResponse node shapes the reply.
    """
    import uvicorn

    from knotwork.server import ServerConfigError, create_app
    from knotwork.workflow_runtime import FlowLoadError, load_flow

    settings = get_settings()

    try:
        flow = load_flow(flow_file)
        app = create_app(flow, settings=settings)
    except (FlowLoadError, ServerConfigError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    trigger = app.state.trigger
    bind_host = host or settings.server_host
    bind_port = port or trigger.port

    click.echo(f"Serving {flow_file} on http://{bind_host}:{bind_port}{trigger.path}")
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=settings.log_level.lower())


# ==============================================================================
# Discovery
# ==============================================================================

@cli.command("list")
def list_command():
    """List flows found in the search directories."""
    flows = discover_flows(get_settings().flow_search_dirs)
    if not flows:
        click.echo("No flows found")
        return

    click.echo("Available flows:")
    for path in flows:
        click.echo(f"  {path}")


@cli.command("nodes")
@click.option("--json", "as_json", is_flag=True, help="Print node definitions with config schemas")
def nodes_command(as_json: bool):
    """List the node types understood by the runtime."""
    from knotwork.nodepacks.core import register_nodes
    from knotwork.workflow_runtime import NodeType

    manifest, node_classes = register_nodes()

    if as_json:
        definitions = {
            tag: node_classes[NodeType(tag)].get_definition()
            for tag in manifest.nodes
        }
        click.echo(json.dumps({
            "pack": manifest.name,
            "version": manifest.version,
            "nodes": definitions,
        }, indent=2))
        return

    click.echo(f"Node types ({manifest.name} {manifest.version}):")
    for tag in manifest.nodes:
        node_class = node_classes[NodeType(tag)]
        display_name = node_class.description.get("displayName", node_class.__name__)
        click.echo(f"  {tag}: {display_name}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
