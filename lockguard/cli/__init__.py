"""
Command line entry point for lockguard.

The ``lockguard`` console script resolves to :func:`app`, which runs the typer
application defined in :mod:`lockguard.cli.app` with ``scan`` as its default
command.
"""
from lockguard.cli.app import app as _app

# Console script target
def app():
    """Run the lockguard typer application."""
    _app()

__all__ = ['app']
