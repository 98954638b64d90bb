"""Traversal levels over delimiter-grouped S3 listings.

A frame holds one listing page of one virtual directory level. It knows which
of the page's common prefixes are worth descending into, which of its records
satisfy the include/exclude patterns, how to fetch the listing of a child
prefix and how to fetch the next page of its own level. ``ObjectsFrame`` speaks
the current-object protocol (one continuation token); ``VersionsFrame`` speaks
the version protocol (key marker plus version id marker).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple

from ..exceptions import S3AccessError
from .atoms import Atom
from .listing import ObjectsPage, S3Lister, VersionsPage
from .patterns import PatternSet, TokenizedPath, tokenize_path

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameContext:
    """Settings shared by every frame of one enumeration."""

    lister: S3Lister
    bucket: str
    delimiter: str
    patterns: PatternSet
    case_sensitive: bool = True
    page_size: Optional[int] = None

    @property
    def max_relevant_depth(self) -> int:
        return self.patterns.max_relevant_depth()

    def path(self, value: Optional[str]) -> TokenizedPath:
        return tokenize_path(value, self.delimiter)


class Frame(Protocol):
    """One level of the depth-first walk."""

    path: TokenizedPath

    def next_child_prefix(self) -> Optional[str]:
        """Return the next child prefix worth descending into, if any."""

    def descend(self, prefix: str) -> "Frame":
        """Fetch the first page of ``prefix`` and wrap it as a new frame."""

    def next_atom(self) -> Optional[Atom]:
        """Return the next matching record of this page, if any."""

    def continuation(self) -> Optional["Frame"]:
        """Fetch the next page of this level, or None if the level is closed."""


def worth_descending(context: FrameContext, prefix: str) -> bool:
    """Return True if keys beneath ``prefix`` could satisfy the patterns."""
    path = context.path(prefix)
    includes, excludes = context.patterns
    if any(exclude.excludes_subtree(path, context.case_sensitive) for exclude in excludes):
        return False
    if not includes:
        return True
    return any(
        include.depth() > len(path) and include.matches_prefix_of(path, context.case_sensitive)
        for include in includes
    )


def child_prefixes(context: FrameContext, prefixes) -> Iterator[str]:
    return (prefix for prefix in prefixes if worth_descending(context, prefix))


def matching_atoms(context: FrameContext, atoms) -> Iterator[Atom]:
    return (
        atom for atom in atoms
        if context.patterns.allows(context.path(atom.key), context.case_sensitive)
    )


def level_can_continue(context: FrameContext, path: TokenizedPath) -> bool:
    # every key listed at or beneath ``path`` has more segments than the path itself
    return context.max_relevant_depth > len(path)


def object_atoms(page: ObjectsPage) -> List[Atom]:
    """Return the page's objects, skipping the placeholder for the scanned prefix."""
    return [Atom.from_object(record) for record in page.contents if record["Key"] != page.prefix]


def version_atoms(page: VersionsPage, carried: Sequence[Atom] = ()) -> Tuple[List[Atom], List[Atom]]:
    """Split the page's delete markers and versions into ready and held atoms.

    ``carried`` holds the earlier part of a key whose versions were cut by the
    previous page. Ready atoms are sorted into one deterministic order. Held
    atoms belong to the key the page was cut inside of and must be merged with
    the next page before they can be ordered.
    """
    atoms = list(carried)
    atoms.extend(Atom.from_delete_marker(record) for record in page.delete_markers)
    atoms.extend(Atom.from_version(record) for record in page.versions)
    atoms = [atom for atom in atoms if atom.key != page.prefix]

    held: List[Atom] = []
    if page.truncated:
        # cut between keys: the next page refetches that key in full;
        # cut mid-key: the next page resumes it, so hold what we have
        boundary = [atom for atom in atoms if atom.key == page.next_key_marker]
        atoms = [atom for atom in atoms if atom.key != page.next_key_marker]
        if page.breaks_key():
            held = boundary
    return sorted(atoms, key=Atom.sort_key), held


class ObjectsFrame:
    """Frame over a current-object listing page."""

    def __init__(self, context: FrameContext, page: ObjectsPage) -> None:
        self.context = context
        self.page = page
        self.path = context.path(page.prefix)
        self._prefixes = child_prefixes(context, page.common_prefixes)
        self._contents = matching_atoms(context, object_atoms(page))

    @classmethod
    def open(cls, context: FrameContext, prefix: Optional[str] = None) -> "ObjectsFrame":
        page = context.lister.list_current(
            context.bucket, context.delimiter, prefix=prefix, max_keys=context.page_size
        )
        return cls(context, page)

    def next_child_prefix(self) -> Optional[str]:
        return next(self._prefixes, None)

    def descend(self, prefix: str) -> "ObjectsFrame":
        return ObjectsFrame.open(self.context, prefix)

    def next_atom(self) -> Optional[Atom]:
        return next(self._contents, None)

    def continuation(self) -> Optional["ObjectsFrame"]:
        if not self.page.truncated or not level_can_continue(self.context, self.path):
            return None
        if not self.page.next_continuation_token:
            raise S3AccessError(
                f"Truncated listing of s3://{self.page.bucket}/{self.page.prefix} has no continuation token."
            )
        page = self.context.lister.list_current(
            self.context.bucket,
            self.context.delimiter,
            prefix=self.page.prefix,
            continuation_token=self.page.next_continuation_token,
            max_keys=self.context.page_size,
        )
        return ObjectsFrame(self.context, page)

    def __repr__(self) -> str:
        return f"ObjectsFrame[{self.page.prefix}]"


class VersionsFrame:
    """Frame over an object-versions listing page."""

    def __init__(self, context: FrameContext, page: VersionsPage, carried: Sequence[Atom] = ()) -> None:
        self.context = context
        self.page = page
        self.path = context.path(page.prefix)
        self._prefixes = child_prefixes(context, page.common_prefixes)
        ready, self._held = version_atoms(page, carried)
        if self._held and not level_can_continue(context, self.path):
            ready = sorted(ready + self._held, key=Atom.sort_key)
            self._held = []
        self._contents = matching_atoms(context, ready)

    @classmethod
    def open(cls, context: FrameContext, prefix: Optional[str] = None) -> "VersionsFrame":
        page = context.lister.list_versions(
            context.bucket, context.delimiter, prefix=prefix, max_keys=context.page_size
        )
        return cls(context, page)

    def next_child_prefix(self) -> Optional[str]:
        return next(self._prefixes, None)

    def descend(self, prefix: str) -> "VersionsFrame":
        return VersionsFrame.open(self.context, prefix)

    def next_atom(self) -> Optional[Atom]:
        return next(self._contents, None)

    def continuation(self) -> Optional["VersionsFrame"]:
        if not self.page.truncated or not level_can_continue(self.context, self.path):
            return None
        if not self.page.next_key_marker:
            raise S3AccessError(
                f"Truncated version listing of s3://{self.page.bucket}/{self.page.prefix} has no next key marker."
            )
        version_id_marker = self.page.next_version_id_marker if self.page.breaks_key() else None
        page = self.context.lister.list_versions(
            self.context.bucket,
            self.context.delimiter,
            prefix=self.page.prefix,
            key_marker=self.page.next_key_marker,
            version_id_marker=version_id_marker,
            max_keys=self.context.page_size,
        )
        return VersionsFrame(self.context, page, self._held)

    def __repr__(self) -> str:
        return f"VersionsFrame[{self.page.prefix}]"
