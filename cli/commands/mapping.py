"""
Mapping command: show the resolved container/volume paths for a resource.
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from binding_engine.core import GroupVersionKind, MappingRuleError
from binding_engine.mapping import mapping_from_rule

from .manifests import load_manifest

console = Console()


def mapping_command(
    api_version: str = typer.Option("apps/v1", "--api-version", help="Application apiVersion"),
    mapping_path: Optional[Path] = typer.Option(
        None, "--mapping", "-m", help="ClusterApplicationResourceMapping manifest"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show which paths the engine reads and writes for an application version.

    Examples:
        sbctl mapping
        sbctl mapping --api-version example.com/v1 -m cronjob-mapping.yaml
    """
    gvk = GroupVersionKind.from_api_version(api_version, "")
    rule = load_manifest(mapping_path, "mapping")

    try:
        mapping = mapping_from_rule(rule, gvk.version)
    except MappingRuleError as e:
        Console(stderr=True).print(f"[red]{e.reason}: {e}[/red]")
        raise typer.Exit(1)

    described = mapping.describe()
    if json_output:
        print(json.dumps(described, indent=2))
        return

    table = Table(title=f"Resource mapping for {api_version} ({described['source']})")
    table.add_column("Field", style="cyan")
    table.add_column("Path", style="green")
    for i, path in enumerate(described["containers"]):
        table.add_row("containers" if i == 0 else "containers (optional)", path)
    table.add_row("volumes", described["volumes"])
    table.add_row("env (per container)", described["env"])
    table.add_row("volumeMounts (per container)", described["volumeMounts"])
    console.print(table)
