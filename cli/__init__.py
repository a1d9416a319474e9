"""Command-line client for the vehicle telemetry search service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` must keep resolving to the module, not the Typer instance,
# because tests patch ``cli.app.ApiClient``.

__all__ = []
