"""
Render command: apply a binding to an application manifest without a cluster.
"""

from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console

from binding_engine.core import BindingError, GroupVersionKind, ServiceBinding
from binding_engine.inject import MATCH_SET, MATCHING_MODES, bind_application, build_config_map, build_projection
from binding_engine.mapping import mapping_from_rule

from .manifests import load_manifest

console = Console(stderr=True)


def render_command(
    binding_path: Path = typer.Option(..., "--binding", "-b", help="ServiceBinding manifest"),
    secret_path: Path = typer.Option(..., "--secret", "-s", help="Secret manifest"),
    application_path: Path = typer.Option(..., "--application", "-a", help="Application manifest"),
    mapping_path: Optional[Path] = typer.Option(
        None, "--mapping", "-m", help="ClusterApplicationResourceMapping manifest"
    ),
    matching: str = typer.Option(MATCH_SET, "--matching", help="Container matching: set or legacy"),
    with_config_map: bool = typer.Option(
        False, "--with-config-map", help="Also print the generated ConfigMap"
    ),
):
    """
    Render an application manifest with a binding projected into it.

    Examples:
        sbctl render -b binding.yaml -s secret.yaml -a deployment.yaml
        sbctl render -b binding.yaml -s secret.yaml -a app.yaml -m mapping.yaml
    """
    if matching not in MATCHING_MODES:
        console.print(f"[red]--matching must be one of: {', '.join(MATCHING_MODES)}[/red]")
        raise typer.Exit(1)

    binding = ServiceBinding.from_dict(load_manifest(binding_path, "binding"))
    secret = load_manifest(secret_path, "secret")
    application = load_manifest(application_path, "application")
    rule = load_manifest(mapping_path, "mapping")

    gvk = GroupVersionKind.from_api_version(application.get("apiVersion", ""), application.get("kind", ""))

    try:
        binding.application.validate()
        mapping = mapping_from_rule(rule, gvk.version)
        projection = build_projection(binding, secret)
        bound = bind_application(
            application,
            mapping,
            projection,
            binding.application.containers,
            matching,
        )
    except BindingError as e:
        console.print(f"[red]{e.reason}: {e}[/red]")
        raise typer.Exit(1)

    documents = [bound]
    if with_config_map:
        documents.insert(0, build_config_map(binding))
    typer.echo(yaml.safe_dump_all(documents, sort_keys=False, default_flow_style=False), nl=False)
