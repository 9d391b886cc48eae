# src/node_eip/cli/__init__.py
"""
node-eip CLI package. Exposes the top-level Typer `app` for the console entrypoint.
"""

from .main import app

__all__ = ["app"]
