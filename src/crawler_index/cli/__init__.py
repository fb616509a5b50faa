"""Unified CLI package exports."""

from crawler_index.cli.argument_parser import build_parser
from crawler_index.cli.entrypoint import main

__all__ = ["build_parser", "main"]
