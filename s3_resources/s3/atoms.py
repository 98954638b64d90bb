"""Uniform wrapper over S3 listing records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .resource import ObjectResource, Precision

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AtomKind(Enum):
    """Kind of listing record an atom was produced from."""

    OBJECT = "object"
    DELETE_MARKER = "delete_marker"
    VERSION = "version"


def _coerce_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return _EPOCH


@dataclass(frozen=True)
class Atom:
    """A single listing record: live object, delete marker or object version."""

    kind: AtomKind
    key: str
    version_id: Optional[str]
    is_latest: bool
    last_modified: datetime
    source: Mapping[str, Any] = field(compare=False, repr=False)

    @classmethod
    def from_object(cls, record: Dict[str, Any]) -> "Atom":
        return cls(
            kind=AtomKind.OBJECT,
            key=record["Key"],
            version_id=None,
            is_latest=True,
            last_modified=_coerce_datetime(record.get("LastModified")),
            source=record,
        )

    @classmethod
    def from_delete_marker(cls, record: Dict[str, Any]) -> "Atom":
        return cls(
            kind=AtomKind.DELETE_MARKER,
            key=record["Key"],
            version_id=record.get("VersionId"),
            is_latest=bool(record.get("IsLatest", False)),
            last_modified=_coerce_datetime(record.get("LastModified")),
            source=record,
        )

    @classmethod
    def from_version(cls, record: Dict[str, Any]) -> "Atom":
        return cls(
            kind=AtomKind.VERSION,
            key=record["Key"],
            version_id=record.get("VersionId"),
            is_latest=bool(record.get("IsLatest", False)),
            last_modified=_coerce_datetime(record.get("LastModified")),
            source=record,
        )

    def sort_key(self) -> Tuple[str, bool, datetime]:
        return (self.key, self.is_latest, self.last_modified)

    def to_resource(self, bucket: str) -> ObjectResource:
        """Materialise the resource this atom describes."""
        if self.kind is AtomKind.OBJECT:
            return ObjectResource(
                bucket=bucket,
                key=self.key,
                size=self.source.get("Size"),
                last_modified=self.last_modified,
                precision=Precision.OBJECT,
            )
        if self.kind is AtomKind.DELETE_MARKER:
            return ObjectResource(
                bucket=bucket,
                key=self.key,
                version_id=self.version_id,
                size=None,
                last_modified=self.last_modified,
                is_delete_marker=True,
                is_latest=self.is_latest,
                precision=Precision.VERSION,
            )
        return ObjectResource(
            bucket=bucket,
            key=self.key,
            version_id=self.version_id,
            size=self.source.get("Size"),
            last_modified=self.last_modified,
            is_latest=self.is_latest,
            precision=Precision.VERSION,
        )
