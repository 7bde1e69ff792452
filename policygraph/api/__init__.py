"""HTTP surface over a single policy editing session."""

from policygraph.api.main import create_app

__all__ = ["create_app"]
