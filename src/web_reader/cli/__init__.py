"""
CLI module for the web reader.

Provides command-line interface using Typer:
- parse: Extract the article of a file or URL
- config: Configuration management
"""

from web_reader.cli.main import app

__all__ = ["app"]
