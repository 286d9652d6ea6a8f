"""Console-script entry point for ``clawcheck``."""

from __future__ import annotations

import sys

from typer.main import get_command

from clawcheck.cli.app import app


def main(argv: list[str] | None = None) -> None:
    """Invoke the Typer application.

    Parameters
    ----------
    argv:
        Optional list of arguments to pass to Typer. When ``None`` the
        process arguments are used.
    """

    args = list(sys.argv[1:] if argv is None else argv)
    command = get_command(app)
    command.main(args=args, prog_name="clawcheck")


__all__ = ["main"]
