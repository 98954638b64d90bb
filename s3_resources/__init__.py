"""Expose S3 objects as pattern-filtered, lazily enumerated resources."""

from .exceptions import (
    CollectionNotFoundError,
    ConfigurationError,
    PatternConfigurationError,
    S3AccessError,
    S3ResourcesError,
    ValidationError,
)
from .s3 import (
    ObjectResource,
    ObjectResources,
    Precision,
    S3Finder,
    S3Lister,
    enumerate_resources,
    narrowest_literal_prefix,
)

__version__ = "1.0.0"

__all__ = [
    "CollectionNotFoundError",
    "ConfigurationError",
    "ObjectResource",
    "ObjectResources",
    "PatternConfigurationError",
    "Precision",
    "S3AccessError",
    "S3Finder",
    "S3Lister",
    "S3ResourcesError",
    "ValidationError",
    "enumerate_resources",
    "narrowest_literal_prefix",
]
