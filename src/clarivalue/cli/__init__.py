"""
ClariValue command line interface.
"""

from clarivalue.cli.main import cli, main

__all__ = ["cli", "main"]
