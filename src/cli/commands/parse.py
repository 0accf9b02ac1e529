import json

import typer
import typer_di
import yaml

from core.errors import MalformedIdentifier
from core.provider_id import extract_compute_identifier, extract_region, is_aws_provider_id

from .console import BOLD, CYAN, RED, RESET, RULE
from ..params import output_params


def _emit(payload: dict, output: str) -> None:
    if output == "json":
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    if output == "yaml":
        typer.echo(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True))
        return

    print()
    print(RULE)
    print(f"{CYAN}{BOLD}PROVIDER ID:{RESET} {payload['provider_id']}")
    if "error" in payload:
        print(f"{RED}{BOLD}ERROR:      {RESET} {payload['error']}")
    else:
        print(f"{CYAN}{BOLD}INSTANCE:   {RESET} {payload['instance_id']}")
        print(f"{CYAN}{BOLD}REGION:     {RESET} {payload['region']}")
    print(RULE)
    print()


def parse(
    provider_id: str = typer.Argument(..., help="Node spec.providerID, e.g. aws:///us-east-1a/i-0abc123def456789a"),
    output: str = typer_di.Depends(output_params),
) -> None:
    """
    Mostra o instance id e a região que o operador derivaria de um providerID.
    """
    if not is_aws_provider_id(provider_id):
        _emit({"provider_id": provider_id, "error": "not an AWS providerID (expected aws:// prefix)"}, output)
        raise typer.Exit(code=1)

    try:
        payload = {
            "provider_id": provider_id,
            "instance_id": extract_compute_identifier(provider_id),
            "region": extract_region(provider_id),
        }
    except MalformedIdentifier as e:
        _emit({"provider_id": provider_id, "error": str(e)}, output)
        raise typer.Exit(code=1)

    _emit(payload, output)
