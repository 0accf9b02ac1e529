from typing import Optional

import typer

OUTPUT_FORMATS = ("text", "json", "yaml")


def output_params(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: text (default), json or yaml.",
    ),
    out_json: bool = typer.Option(False, "--json", help="Alias para --output json"),
    out_yaml: bool = typer.Option(False, "--yaml", help="Alias para --output yaml"),
    out_text: bool = typer.Option(False, "--text", help="Alias para --output text"),
) -> str:
    aliases = {"json": out_json, "yaml": out_yaml, "text": out_text}
    chosen = [fmt for fmt, flag in aliases.items() if flag]

    if len(chosen) + (output is not None) > 1:
        raise typer.BadParameter("Use only one output option: --json, --yaml, --text or --output.")

    if chosen:
        return chosen[0]

    if output is None:
        return "text"

    output = output.lower()
    if output not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"--output must be one of {', '.join(OUTPUT_FORMATS)}")
    return output
