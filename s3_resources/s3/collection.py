"""Collections of S3 object resources."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from .finder import S3Finder
from .listing import S3Lister
from .patterns import DEFAULT_DELIMITER, read_pattern_file, split_patterns
from .resource import ObjectResource, Precision
from .selectors import ResourceSelector

LOGGER = logging.getLogger(__name__)


def enumerate_resources(
    s3_client,
    bucket: str,
    precision: Precision = Precision.OBJECT,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    includes: Optional[Iterable[str]] = None,
    excludes: Optional[Iterable[str]] = None,
    case_sensitive: bool = True,
    page_size: Optional[int] = None,
) -> Iterator[ObjectResource]:
    """Return a lazy, single-pass iterator over the matching resources of a bucket."""
    return S3Finder(
        S3Lister(s3_client),
        bucket,
        precision,
        delimiter=delimiter,
        includes=includes,
        excludes=excludes,
        case_sensitive=case_sensitive,
        page_size=page_size,
    )


class ObjectResources:
    """Pattern-filtered collection of the objects in one bucket.

    Every iteration runs a fresh enumeration unless caching is enabled and a
    previous enumeration was drained completely, in which case the cached
    resources are replayed. Changing any setting discards the cache.
    """

    def __init__(
        self,
        s3_client,
        bucket: str,
        *,
        precision: Precision = Precision.OBJECT,
        delimiter: str = DEFAULT_DELIMITER,
        includes: Optional[Iterable[str]] = None,
        excludes: Optional[Iterable[str]] = None,
        case_sensitive: bool = True,
        cache: bool = True,
        page_size: Optional[int] = None,
        selectors: Optional[Iterable[ResourceSelector]] = None,
    ) -> None:
        self.lister = S3Lister(s3_client)
        self._bucket = bucket
        self._precision = Precision.parse(precision)
        self._delimiter = delimiter
        self._case_sensitive = case_sensitive
        self._cache_enabled = cache
        self._page_size = page_size
        self._includes: List[str] = []
        self._excludes: List[str] = []
        self._selectors: List[ResourceSelector] = list(selectors or [])
        self._cache: Optional[List[ObjectResource]] = None
        self._generation = 0
        self._includes.extend(self._as_list(includes))
        self._excludes.extend(self._as_list(excludes))

    @property
    def bucket(self) -> str:
        return self._bucket

    @bucket.setter
    def bucket(self, value: str) -> None:
        if value != self._bucket:
            self._bucket = value
            self.reset_cache()

    @property
    def precision(self) -> Precision:
        return self._precision

    @precision.setter
    def precision(self, value: Precision) -> None:
        value = Precision.parse(value)
        if value is not self._precision:
            self._precision = value
            self.reset_cache()

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @delimiter.setter
    def delimiter(self, value: str) -> None:
        if value != self._delimiter:
            self._delimiter = value
            self.reset_cache()

    @property
    def case_sensitive(self) -> bool:
        return self._case_sensitive

    @case_sensitive.setter
    def case_sensitive(self, value: bool) -> None:
        if value != self._case_sensitive:
            self._case_sensitive = value
            self.reset_cache()

    @property
    def cache(self) -> bool:
        return self._cache_enabled

    @cache.setter
    def cache(self, value: bool) -> None:
        self._cache_enabled = value
        if not value:
            self.reset_cache()

    @property
    def includes(self) -> List[str]:
        return list(self._includes)

    @property
    def excludes(self) -> List[str]:
        return list(self._excludes)

    @property
    def selectors(self) -> List[ResourceSelector]:
        return list(self._selectors)

    def include(self, patterns: str) -> "ObjectResources":
        """Add include patterns, given as a comma or space separated list."""
        self._includes.extend(split_patterns(patterns))
        self.reset_cache()
        return self

    def exclude(self, patterns: str) -> "ObjectResources":
        """Add exclude patterns, given as a comma or space separated list."""
        self._excludes.extend(split_patterns(patterns))
        self.reset_cache()
        return self

    def include_from_file(self, path: Union[str, Path]) -> "ObjectResources":
        self._includes.extend(read_pattern_file(path))
        self.reset_cache()
        return self

    def exclude_from_file(self, path: Union[str, Path]) -> "ObjectResources":
        self._excludes.extend(read_pattern_file(path))
        self.reset_cache()
        return self

    def add_selector(self, selector: Optional[ResourceSelector]) -> "ObjectResources":
        if selector is None:
            return self
        self._selectors.append(selector)
        self.reset_cache()
        return self

    def has_patterns(self) -> bool:
        return bool(self._includes or self._excludes)

    def reset_cache(self) -> None:
        self._cache = None
        self._generation += 1

    def create_finder(self) -> S3Finder:
        """Return a new finder for one enumeration of this collection."""
        return S3Finder(
            self.lister,
            self._bucket,
            self._precision,
            delimiter=self._delimiter,
            includes=self._includes,
            excludes=self._excludes,
            case_sensitive=self._case_sensitive,
            page_size=self._page_size,
        )

    def __iter__(self) -> Iterator[ObjectResource]:
        if self._cache is not None:
            resources: Iterator[ObjectResource] = iter(self._cache)
        else:
            resources = self._enumerate(self.create_finder())
        if not self._selectors:
            return resources
        return (resource for resource in resources if self.is_selected(resource))

    def _enumerate(self, finder: S3Finder) -> Iterator[ObjectResource]:
        collected: Optional[List[ObjectResource]] = [] if self._cache_enabled else None
        generation = self._generation
        for resource in finder:
            if collected is not None:
                collected.append(resource)
            yield resource
        if collected is not None and generation == self._generation:
            LOGGER.debug("Caching %s resources of s3://%s", len(collected), self._bucket)
            self._cache = collected

    def is_selected(self, resource: ObjectResource) -> bool:
        return any(selector(resource) for selector in self._selectors)

    def size(self) -> int:
        """Return the number of resources in the collection."""
        if self._cache is not None and not self._selectors:
            return len(self._cache)
        if self.has_patterns() or self._selectors or self._precision is Precision.VERSION:
            return sum(1 for _ in self)
        return self.lister.count_objects(self._bucket)

    @staticmethod
    def _as_list(patterns: Optional[Iterable[str]]) -> List[str]:
        if patterns is None:
            return []
        if isinstance(patterns, str):
            return split_patterns(patterns)
        return list(patterns)

    def __repr__(self) -> str:
        return f"ObjectResources(s3://{self._bucket}, as={self._precision.value})"
