"""S3 enumeration helpers."""

from .atoms import Atom, AtomKind
from .collection import ObjectResources, enumerate_resources
from .finder import S3Finder, narrowest_literal_prefix
from .listing import ObjectsPage, S3Lister, VersionsPage
from .patterns import PatternSet, TokenizedPattern, tokenize
from .resource import ObjectResource, Precision
from .selectors import AttributeSelector, FlagSelector, MatchAs, PrecisionSelector, selector_from_config

__all__ = [
    "Atom",
    "AtomKind",
    "AttributeSelector",
    "FlagSelector",
    "MatchAs",
    "ObjectResource",
    "ObjectResources",
    "ObjectsPage",
    "PatternSet",
    "Precision",
    "PrecisionSelector",
    "S3Finder",
    "S3Lister",
    "TokenizedPattern",
    "VersionsPage",
    "enumerate_resources",
    "narrowest_literal_prefix",
    "selector_from_config",
    "tokenize",
]
