"""Command-line interface module for the HRML parser.

Provides the hrml-query batch driver and token/tree inspection commands.
"""

from .main import main

__all__ = ["main"]
