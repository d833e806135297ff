"""
Manifest loading shared by the commands.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from rich.console import Console

console = Console(stderr=True)


def load_manifest(path: Optional[Path], what: str) -> Optional[Dict[str, Any]]:
    """Read one YAML document; exits with status 1 when it is unreadable."""
    if path is None:
        return None
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        console.print(f"[red]{what} file not found: {path}[/red]")
        raise typer.Exit(1)
    except yaml.YAMLError as e:
        console.print(f"[red]Invalid YAML in {what} file {path}: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print(f"[red]{what} file {path} does not contain a resource[/red]")
        raise typer.Exit(1)
    return data
