import json
from typing import Optional

import typer
import typer_di
import yaml

from core.reconcilers import load_reconcilers

from .console import BOLD, CYAN, GREEN, GREY, RESET, RULE
from ..params import output_params


def _print_reconcilers(reconcilers_list: list[dict[str, Optional[str]]], output: str) -> None:
    if output == "json":
        typer.echo(json.dumps(reconcilers_list, indent=2, ensure_ascii=False))
        return

    if output == "yaml":
        typer.echo(yaml.safe_dump(reconcilers_list, sort_keys=False, allow_unicode=True))
        return

    print()
    print(RULE)
    print(f"{CYAN}{BOLD}Registered Reconcilers:{RESET}")
    print(RULE)
    print()
    if not reconcilers_list:
        print("  (none registered)")
        print()
        return

    for r in reconcilers_list:
        print(f"  {GREEN}•{RESET} {r['name']:<40} {GREY}(kind={r['kind']}, field={r['watched_field']}){RESET}")

    print()
    print(RULE)
    print()


def reconcilers(output: str = typer_di.Depends(output_params)) -> None:
    """
    Lista os kinds do Kubernetes que o operador sabe reconciliar.
    """
    reconcilers_list = [
        {
            "name": cls.__name__,
            "kind": cls.kind,
            "resource": f"{cls.api_version}/{cls.plural}",
            "watched_field": cls.watched_field,
        }
        for cls in sorted(load_reconcilers(), key=lambda c: c.__name__.lower())
    ]
    _print_reconcilers(reconcilers_list, output)
