"""Connection configuration and engine adapter resolution.

DatabaseConfig is a Pydantic model for type-safe connection config.
Adapters are resolved by driver name and imported lazily.
"""

from __future__ import annotations

import importlib
from typing import Any

from pydantic import BaseModel

from lite_query.core.exceptions import AdapterError


class DatabaseConfig(BaseModel):
    """Configuration for a single engine connection."""

    driver: str = "sqlite"
    database: str = ":memory:"
    results_as_hash: bool = False
    strict: bool = False
    timeout: float = 5.0
    check_same_thread: bool = True


# Adapter module mapping: driver name → (module_path, class_name)
_ADAPTER_MAP: dict[str, tuple[str, str]] = {
    "sqlite": ("lite_query.adapters.sqlite", "SqliteAdapter"),
}


def load_adapter(driver: str) -> Any:
    """Load an engine adapter by driver name."""
    driver_lower = driver.lower()
    if driver_lower not in _ADAPTER_MAP:
        raise AdapterError(f"Unsupported database driver: {driver}")

    module_path, cls_name = _ADAPTER_MAP[driver_lower]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{driver}': {e}") from e
