"""Control-type catalog mapping control names to label class indices."""

from src.catalog.lib import (
    DEFAULT_CATALOG,
    ClassCatalog,
    ClassEntry,
    UnknownClassError,
)

__all__ = [
    "ClassCatalog",
    "ClassEntry",
    "DEFAULT_CATALOG",
    "UnknownClassError",
]
