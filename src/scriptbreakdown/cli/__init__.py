"""Command line interface for screenplay breakdowns."""

from .main import app, main

__all__ = ["app", "main"]
