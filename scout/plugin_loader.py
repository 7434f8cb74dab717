"""
Plugin loader for automatic discovery and registration of source adapters.
"""

import importlib
import inspect
import logging
import pkgutil
from types import ModuleType
from typing import Dict, Type

from .errors import UnknownSourceError
from .interfaces import SourceAdapter

logger = logging.getLogger(__name__)

# Package scanned for adapters
PLUGIN_PACKAGE = "plugins"

# Global registry of discovered adapter classes, keyed by ``SourceAdapter.name``
_REGISTRY: Dict[str, Type[SourceAdapter]] = {}


def _iter_modules(package_name: str):
    package = importlib.import_module(package_name)
    yield package
    for info in pkgutil.walk_packages(package.__path__, prefix=f"{package_name}."):
        # Skip private modules such as plugins/devpost/_selectors.py
        if info.name.rsplit(".", 1)[-1].startswith("_"):
            continue
        yield importlib.import_module(info.name)


def _register_module(mod: ModuleType) -> int:
    count = 0
    for _, obj in inspect.getmembers(mod, inspect.isclass):
        if (issubclass(obj, SourceAdapter)
                and obj is not SourceAdapter
                and not inspect.isabstract(obj)
                and obj.name
                and obj.__module__ == mod.__name__):
            _REGISTRY[obj.name] = obj
            count += 1
            logger.debug(f"Registered source adapter: {obj.name} -> {obj.__module__}.{obj.__name__}")
    return count


def refresh_registry(package_name: str = PLUGIN_PACKAGE) -> None:
    """Import every module under *package_name* and register adapter classes."""
    _REGISTRY.clear()

    module_count = 0
    adapter_count = 0
    for mod in _iter_modules(package_name):
        module_count += 1
        adapter_count += _register_module(mod)

    logger.info(f"Plugin discovery complete: {module_count} modules, {adapter_count} adapters")


def get(name: str) -> Type[SourceAdapter]:
    """Get an adapter class by its source name (e.g. ``"devpost"``).

    Raises:
        UnknownSourceError: If no adapter is registered under *name*
    """
    if not _REGISTRY:
        refresh_registry()

    key = (name or "").strip().lower()
    if key not in _REGISTRY:
        available = sorted(_REGISTRY)
        raise UnknownSourceError(f"Source '{name}' not found. Available: {available}")

    return _REGISTRY[key]


def list_available() -> Dict[str, Type[SourceAdapter]]:
    """Get a copy of all registered adapters."""
    if not _REGISTRY:
        refresh_registry()
    return _REGISTRY.copy()
