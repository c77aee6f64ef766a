"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsite.cli.commands import build_cmd, clean_cmd, list_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Static site generator for Markdown posts")

app.command(name="build")(build_cmd)
app.command(name="list")(list_cmd)
app.command(name="clean")(clean_cmd)
