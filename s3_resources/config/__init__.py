"""Configuration utilities for S3 resources."""

from .config_manager import CollectionConfig, ConfigManager

__all__ = ["CollectionConfig", "ConfigManager"]
