from importlib.metadata import PackageNotFoundError, version

import typer

DIST_NAME = "aws-node-retag"


def get_version() -> str:
    try:
        return version(DIST_NAME)
    except PackageNotFoundError:
        # rodando direto do checkout, sem `pip install -e .`
        return "0.0.0+unknown"


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{DIST_NAME} {get_version()}")
        raise typer.Exit()
