"""HTTP surface for coinseries."""

from .app import create_app

__all__ = ["create_app"]
