"""Additional validation helpers for configuration structures."""

from __future__ import annotations

from ..exceptions import CollectionNotFoundError
from .config_manager import CollectionConfig, ConfigManager


def ensure_collection_exists(config: ConfigManager, collection_name: str) -> CollectionConfig:
    """Return the named collection; raise if it is not configured."""
    collection = config.get_collection_by_name(collection_name)
    if collection is None:
        available = ", ".join(c.name for c in config.get_collections()) or "none"
        raise CollectionNotFoundError(
            f"Collection '{collection_name}' is not configured (available: {available})."
        )
    return collection
