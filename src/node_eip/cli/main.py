# src/node_eip/cli/main.py
"""
Entry point of the node-eip CLI.

`node-eip start` runs the agent on the node named by NODE_NAME and
`node-eip version` prints the installed version. Logging is configured by
`start`, so the version command stays quiet.
"""

import typer

from .. import __version__
from . import start

app = typer.Typer(
    name="node-eip",
    help="Keep this node's Elastic IP in line with the policy in its labels.",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(start.app, name="start")


@app.command()
def version():
    """
    Show the version of node-eip.
    """
    typer.echo(f"node-eip version: {__version__}")


if __name__ == "__main__":
    app()
