"""Depth-first S3 object finder."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional, Set

from ..exceptions import PatternConfigurationError
from .frames import Frame, FrameContext, ObjectsFrame, VersionsFrame
from .listing import MAX_PAGE_SIZE, S3Lister
from .patterns import DEFAULT_DELIMITER, TokenizedPath, TokenizedPattern, tokenize
from .resource import ObjectResource, Precision

LOGGER = logging.getLogger(__name__)


def narrowest_literal_prefix(
    includes: Iterable[TokenizedPattern],
    delimiter: str = DEFAULT_DELIMITER,
) -> Optional[str]:
    """Return the longest literal prefix shared by every include pattern.

    Each pattern contributes the literal directory that must contain all of
    its matches; the directories are shortened to a common depth until only
    one remains. Returns None when there are no includes or they diverge at
    the bucket root.
    """
    paths: Set[TokenizedPath] = {include.literal_directory() for include in includes}
    if not paths:
        return None

    depth = min(len(path) for path in paths)
    paths = {path[:depth] for path in paths}
    while len(paths) > 1:
        depth -= 1
        paths = {path[:depth] for path in paths}

    common = next(iter(paths))
    if not common:
        return None
    return delimiter.join(common) + delimiter


class S3Finder:
    """Lazily enumerates the resources of one bucket matching include/exclude patterns.

    Common prefixes returned by delimiter-based listings are walked depth
    first with an explicit stack of frames: every explored subtree of a level
    is emitted before that level's own records, and truncated pages are
    continued in place. A finder is single pass; create a new one for each
    enumeration.
    """

    def __init__(
        self,
        lister: S3Lister,
        bucket: str,
        precision: Precision = Precision.OBJECT,
        *,
        delimiter: str = DEFAULT_DELIMITER,
        includes: Optional[Iterable[str]] = None,
        excludes: Optional[Iterable[str]] = None,
        case_sensitive: bool = True,
        page_size: Optional[int] = None,
        prefix_optimization: bool = True,
    ) -> None:
        if not isinstance(bucket, str) or not bucket.strip():
            raise PatternConfigurationError("Bucket must be a non-empty string.")
        if page_size is not None and (
            isinstance(page_size, bool) or not isinstance(page_size, int) or not 0 < page_size <= MAX_PAGE_SIZE
        ):
            raise PatternConfigurationError(f"Page size must be an integer between 1 and {MAX_PAGE_SIZE}.")

        self.bucket = bucket.strip()
        self.precision = Precision.parse(precision)
        self.delimiter = delimiter
        self.case_sensitive = bool(case_sensitive)
        self.patterns = tokenize(includes, excludes, delimiter)
        self._context = FrameContext(
            lister=lister,
            bucket=self.bucket,
            delimiter=delimiter,
            patterns=self.patterns,
            case_sensitive=self.case_sensitive,
            page_size=page_size,
        )

        # listing prefixes are byte-literal, so narrowing is unsound without case sensitivity
        if self.case_sensitive and prefix_optimization:
            self.root_prefix = narrowest_literal_prefix(self.patterns.includes, delimiter)
        else:
            self.root_prefix = None

        self._stack: List[Frame] = []
        self._started = False
        self._lock = threading.Lock()

    def produce_next(self) -> Optional[ObjectResource]:
        """Return the next matching resource, or None once the enumeration is exhausted."""
        with self._lock:
            if not self._started:
                self._started = True
                self._stack.append(self._open_root())

            while self._stack:
                top = self._stack[-1]
                child = top.next_child_prefix()
                while child is not None:
                    top = top.descend(child)
                    self._stack.append(top)
                    child = top.next_child_prefix()

                atom = top.next_atom()
                if atom is not None:
                    return atom.to_resource(self.bucket)

                self._stack.pop()
                following = top.continuation()
                if following is not None:
                    self._stack.append(following)
            return None

    def __iter__(self) -> "S3Finder":
        return self

    def __next__(self) -> ObjectResource:
        resource = self.produce_next()
        if resource is None:
            raise StopIteration
        return resource

    def _open_root(self) -> Frame:
        LOGGER.debug(
            "Enumerating s3://%s/%s as %s", self.bucket, self.root_prefix or "", self.precision.value
        )
        if self.precision is Precision.OBJECT:
            return ObjectsFrame.open(self._context, self.root_prefix)
        return VersionsFrame.open(self._context, self.root_prefix)
