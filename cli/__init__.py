"""Command line tools for running and querying the dashboard proxy."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# Resolved lazily so importing ``cli`` does not pull in FastAPI and uvicorn.

__all__ = []
