"""Typer application and the options shared by every dirdigest command."""

import typer

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every stage and worker at DEBUG level"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors; skip the summary"),
    json_output: bool = typer.Option(False, "--json", help="Print the run summary (rows, workers, error) as JSON on stdout"),
):
    """Hash every file whose name matches a pattern and record (path, digest) rows.

    Status and logs go to stderr; stdout carries only the --json summary.
    """
    ctx.obj = {"verbose": verbose, "quiet": quiet, "json": json_output}
