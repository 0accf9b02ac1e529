import json
from dataclasses import asdict
from typing import Optional

import typer
import typer_di
import yaml

from core.engine.identity_engine import get_current_aws_identity
from core.models import AwsIdentity, AwsIdentityError

from .console import BOLD, CYAN, GREEN, MAGENTA, RED, RESET, RULE, YELLOW
from ..params import output_params


def _print_identity(
    identity: Optional[AwsIdentity],
    error: Optional[Exception],
    output: Optional[str],
) -> None:
    if error:
        if output == "json":
            typer.echo(json.dumps({"error": str(error)}, indent=2, ensure_ascii=False))
            raise typer.Exit(code=1)

        if output == "yaml":
            typer.echo(yaml.safe_dump({"error": str(error)}, sort_keys=False, allow_unicode=True))
            raise typer.Exit(code=1)

        print()
        print(RULE)
        print(f"{RED}{BOLD}FAILED TO RESOLVE AWS IDENTITY{RESET}")
        print(RULE)
        print()
        print(f"{MAGENTA}Details:{RESET}")
        print(f"  {error}")
        print()
        print(f"{YELLOW}Check that:{RESET}")
        print("  - the pod's IAM role (IRSA / instance profile) is attached")
        print("  - AWS_PROFILE / AWS_REGION are set correctly when running locally")
        print("  - the role is allowed to call `sts:GetCallerIdentity`")
        print("  - the role is allowed to call `ec2:DescribeInstances` and `ec2:CreateTags`")
        print()
        print(RULE)
        raise typer.Exit(code=1)

    assert identity is not None

    identity_dict = asdict(identity)
    identity_dict["role_name"] = identity.role_name

    if output == "json":
        typer.echo(json.dumps(identity_dict, indent=2, ensure_ascii=False))
        return

    if output == "yaml":
        typer.echo(yaml.safe_dump(identity_dict, sort_keys=False, allow_unicode=True))
        return

    profile = identity.profile or "(no profile / env creds)"
    region = identity.region or "(no default region)"

    print()
    print(RULE)
    print(f"{CYAN}{BOLD}AWS-NODE-RETAG — AWS Identity Context{RESET}")
    print(RULE)
    print(f"{CYAN}{BOLD}ACCOUNT:{RESET} {identity.account}")
    print(f"{CYAN}{BOLD}ARN:    {RESET} {identity.arn}")
    if identity.role_name:
        print(f"{CYAN}{BOLD}ROLE:   {RESET} {identity.role_name}")
    print(f"{CYAN}{BOLD}PROFILE:{RESET} {profile}")
    print(f"{CYAN}{BOLD}REGION: {RESET} {region}")
    print(RULE)
    print(f"{GREEN}{BOLD}Identity OK.{RESET}")
    print(RULE)
    print()


def whoami(
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        envvar="AWS_PROFILE",
        help="AWS profile name (from ~/.aws/config).",
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        envvar="AWS_REGION",
        help="AWS region, e.g. sa-east-1.",
    ),
    output: str = typer_di.Depends(output_params),
) -> None:
    """
    Mostra a identidade AWS que o operador usaria (Account ID, ARN).
    """
    identity = None
    err = None

    try:
        identity = get_current_aws_identity(profile=profile, region=region)
    except AwsIdentityError as e:
        err = e

    _print_identity(identity, err, output)
