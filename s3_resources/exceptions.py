"""Custom exception definitions for S3 resources."""


class S3ResourcesError(Exception):
    """Base exception for the package."""


class ConfigurationError(S3ResourcesError):
    """Raised when configuration loading fails or an AWS session cannot be created."""


class ValidationError(S3ResourcesError):
    """Raised when input validation fails."""


class PatternConfigurationError(ValidationError):
    """Raised when a finder is configured with unusable patterns or options."""


class CollectionNotFoundError(S3ResourcesError):
    """Raised when the specified resource collection is not configured."""


class S3AccessError(S3ResourcesError):
    """Raised when listing S3 resources fails."""
