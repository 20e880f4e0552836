"""Deferred imports for optional heavy dependencies (motor, google-genai)."""

from collections.abc import Callable
from functools import cache
from importlib import import_module

__all__ = [
    "lazy_import",
]


def lazy_import(
    module_name: str,
    name: str | None = None,
) -> Callable[[], object]:
    """Return a loader that imports a module (or one of its attributes) on first call.

    The import result is cached, so repeated calls are cheap.
    """

    @cache
    def _load() -> object:
        mod = import_module(module_name)
        return getattr(mod, name) if name else mod

    return _load
