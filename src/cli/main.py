import typer
import typer_di

from .commands import parse, reconcilers, run, whoami
from .version import version_callback


app = typer_di.TyperDI(help="Tag the EC2 instances and EBS volumes behind Kubernetes nodes and persistent volumes.")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show the version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    pass


app.command()(run)
app.command()(whoami)
app.command()(parse)
app.command()(reconcilers)


if __name__ == "__main__":
    app()
