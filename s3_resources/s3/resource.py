"""S3 object resources produced by enumeration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..exceptions import PatternConfigurationError


class Precision(str, Enum):
    """Precision to which S3 objects are enumerated."""

    OBJECT = "object"
    """Current objects only, treated as simple files."""

    VERSION = "version"
    """Every object version and delete marker; the version is part of the identity."""

    @classmethod
    def parse(cls, value: Any) -> "Precision":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise PatternConfigurationError(f"Unknown precision '{value}'; expected one of: {choices}.") from exc


@dataclass(frozen=True)
class ObjectResource:
    """Represents an S3 object, object version or delete marker."""

    bucket: str
    key: str
    version_id: Optional[str] = None
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    is_delete_marker: bool = False
    is_latest: bool = True
    precision: Precision = Precision.OBJECT

    @property
    def name(self) -> str:
        """Return the key, suffixed with ``@version`` under version precision."""
        if self.precision is Precision.VERSION and self.version_id:
            return f"{self.key}@{self.version_id}"
        return self.key

    def get_s3_uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def get_filename(self) -> str:
        return os.path.basename(self.key)

    def get_size_mb(self) -> float:
        return (self.size or 0) / (1024 * 1024)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bucket": self.bucket,
            "key": self.key,
            "name": self.name,
            "version_id": self.version_id,
            "size": self.size,
            "last_modified": self.last_modified,
            "is_delete_marker": self.is_delete_marker,
            "is_latest": self.is_latest,
            "precision": self.precision.value,
        }

    def __str__(self) -> str:
        return f"s3://{self.bucket}/{self.name}"
