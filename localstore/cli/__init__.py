"""Local store CLI.

Inspect and edit the configured store from the command line.
Built with Click and Rich.
"""

from localstore.cli.main import cli

__all__ = ["cli"]
