"""Command line interface"""

from blank.cli.main import app, typer_app

__all__ = ["app", "typer_app"]
