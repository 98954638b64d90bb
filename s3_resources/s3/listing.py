"""S3 listing pages and the client wrapper that fetches them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import S3AccessError

LOGGER = logging.getLogger(__name__)

MAX_PAGE_SIZE = 1000

Record = Dict[str, Any]


def _common_prefixes(response: Dict[str, Any]) -> Tuple[str, ...]:
    return tuple(common["Prefix"] for common in response.get("CommonPrefixes") or [] if common.get("Prefix"))


@dataclass(frozen=True)
class ObjectsPage:
    """One page of a ``list_objects_v2`` listing."""

    bucket: str
    prefix: str
    delimiter: Optional[str]
    truncated: bool
    common_prefixes: Tuple[str, ...]
    contents: Tuple[Record, ...]
    continuation_token: Optional[str] = None
    next_continuation_token: Optional[str] = None

    @classmethod
    def from_response(cls, bucket: str, response: Dict[str, Any]) -> "ObjectsPage":
        return cls(
            bucket=bucket,
            prefix=response.get("Prefix") or "",
            delimiter=response.get("Delimiter"),
            truncated=bool(response.get("IsTruncated", False)),
            common_prefixes=_common_prefixes(response),
            contents=tuple(response.get("Contents") or []),
            continuation_token=response.get("ContinuationToken"),
            next_continuation_token=response.get("NextContinuationToken"),
        )


@dataclass(frozen=True)
class VersionsPage:
    """One page of a ``list_object_versions`` listing."""

    bucket: str
    prefix: str
    delimiter: Optional[str]
    truncated: bool
    common_prefixes: Tuple[str, ...]
    versions: Tuple[Record, ...]
    delete_markers: Tuple[Record, ...]
    key_marker: Optional[str] = None
    version_id_marker: Optional[str] = None
    next_key_marker: Optional[str] = None
    next_version_id_marker: Optional[str] = None

    @classmethod
    def from_response(cls, bucket: str, response: Dict[str, Any]) -> "VersionsPage":
        return cls(
            bucket=bucket,
            prefix=response.get("Prefix") or "",
            delimiter=response.get("Delimiter"),
            truncated=bool(response.get("IsTruncated", False)),
            common_prefixes=_common_prefixes(response),
            versions=tuple(response.get("Versions") or []),
            delete_markers=tuple(response.get("DeleteMarkers") or []),
            key_marker=response.get("KeyMarker"),
            version_id_marker=response.get("VersionIdMarker"),
            next_key_marker=response.get("NextKeyMarker"),
            next_version_id_marker=response.get("NextVersionIdMarker"),
        )

    def breaks_key(self) -> bool:
        """Return True if the page was truncated partway through one key's versions."""
        return self.truncated and self.next_key_marker == self.key_marker


class S3Lister:
    """Issues single listing requests against an S3 client."""

    def __init__(self, s3_client) -> None:
        self.s3_client = s3_client

    def list_current(
        self,
        bucket: str,
        delimiter: Optional[str],
        prefix: Optional[str] = None,
        continuation_token: Optional[str] = None,
        max_keys: Optional[int] = None,
    ) -> ObjectsPage:
        """Return one page of current objects beneath ``prefix``."""
        LOGGER.debug("listing %s objects '%s' '%s'", bucket, prefix, continuation_token)
        params = self._build_params(bucket, delimiter, prefix, max_keys)
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        try:
            response = self.s3_client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as exc:
            raise S3AccessError(f"Unable to list objects for s3://{bucket}/{prefix or ''}: {exc}") from exc
        return ObjectsPage.from_response(bucket, response)

    def list_versions(
        self,
        bucket: str,
        delimiter: Optional[str],
        prefix: Optional[str] = None,
        key_marker: Optional[str] = None,
        version_id_marker: Optional[str] = None,
        max_keys: Optional[int] = None,
    ) -> VersionsPage:
        """Return one page of object versions and delete markers beneath ``prefix``."""
        LOGGER.debug(
            "listing %s versions '%s' '%s' '%s'", bucket, prefix, key_marker, version_id_marker
        )
        params = self._build_params(bucket, delimiter, prefix, max_keys)
        if key_marker:
            params["KeyMarker"] = key_marker
        if version_id_marker:
            params["VersionIdMarker"] = version_id_marker
        try:
            response = self.s3_client.list_object_versions(**params)
        except (ClientError, BotoCoreError) as exc:
            raise S3AccessError(f"Unable to list versions for s3://{bucket}/{prefix or ''}: {exc}") from exc
        return VersionsPage.from_response(bucket, response)

    def count_objects(self, bucket: str) -> int:
        """Count every current object in the bucket without building resources."""
        LOGGER.debug("counting %s objects", bucket)
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            return sum(int(page.get("KeyCount", 0)) for page in paginator.paginate(Bucket=bucket))
        except (ClientError, BotoCoreError) as exc:
            raise S3AccessError(f"Unable to count objects for s3://{bucket}: {exc}") from exc

    @staticmethod
    def _build_params(
        bucket: str,
        delimiter: Optional[str],
        prefix: Optional[str],
        max_keys: Optional[int],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"Bucket": bucket}
        if delimiter:
            params["Delimiter"] = delimiter
        if prefix:
            params["Prefix"] = prefix
        if max_keys:
            params["MaxKeys"] = max_keys
        return params
