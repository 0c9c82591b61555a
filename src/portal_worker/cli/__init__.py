"""
CLI module for the portal automation worker.

Provides command-line interface using Typer:
- serve: Run the HTTP worker
- precheck: Classify a single page
- run: Execute a pipeline file
- search / expand: Call the external adapters
- config: Configuration management
"""

from portal_worker.cli.main import app

__all__ = ["app"]
