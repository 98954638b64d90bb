"""Resource selectors applied after enumeration."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from ..exceptions import ValidationError
from .patterns import DEFAULT_DELIMITER, TokenizedPattern, tokenize_path
from .resource import ObjectResource, Precision

ResourceSelector = Callable[[ObjectResource], bool]


class MatchAs(str, Enum):
    """How a string attribute is compared against the selector value."""

    GLOB = "glob"
    LITERAL = "literal"
    REGEX = "regex"


STRING_ATTRIBUTES = ("bucket", "key", "version_id")
FLAG_ATTRIBUTES = ("latest", "delete_marker")


class AttributeSelector:
    """Selects resources whose string attribute matches a value."""

    def __init__(
        self,
        attribute: str,
        value: str,
        match_as: MatchAs = MatchAs.LITERAL,
        case_sensitive: bool = True,
        negate: bool = False,
    ) -> None:
        if attribute not in STRING_ATTRIBUTES:
            raise ValidationError(f"Unsupported selector attribute '{attribute}'.")
        if value is None:
            raise ValidationError(f"Selector for '{attribute}' requires a value.")
        self.attribute = attribute
        self.value = str(value).strip()
        self.match_as = MatchAs(match_as)
        self.case_sensitive = case_sensitive
        self.negate = negate
        self._predicate = self._build_predicate()

    def _build_predicate(self) -> Callable[[str], bool]:
        if self.match_as is MatchAs.GLOB:
            pattern = TokenizedPattern.parse(self.value, DEFAULT_DELIMITER)
            return lambda candidate: pattern.matches(tokenize_path(candidate), self.case_sensitive)
        if self.match_as is MatchAs.REGEX:
            try:
                compiled = re.compile(self.value, 0 if self.case_sensitive else re.IGNORECASE)
            except re.error as exc:
                raise ValidationError(f"Invalid regex pattern '{self.value}': {exc}") from exc
            return lambda candidate: compiled.search(candidate) is not None
        if self.case_sensitive:
            return lambda candidate: candidate == self.value
        folded = self.value.casefold()
        return lambda candidate: candidate.casefold() == folded

    def __call__(self, resource: ObjectResource) -> bool:
        candidate: Optional[str] = getattr(resource, self.attribute)
        selected = candidate is not None and self._predicate(candidate)
        return selected != self.negate

    def __repr__(self) -> str:
        return f"AttributeSelector({self.attribute}, {self.match_as.value}, {self.value!r}, negate={self.negate})"


class FlagSelector:
    """Selects latest versions or delete markers."""

    def __init__(self, attribute: str, negate: bool = False) -> None:
        if attribute not in FLAG_ATTRIBUTES:
            raise ValidationError(f"Unsupported selector attribute '{attribute}'.")
        self.attribute = attribute
        self.negate = negate

    def __call__(self, resource: ObjectResource) -> bool:
        if self.attribute == "latest":
            selected = resource.is_latest
        else:
            selected = resource.is_delete_marker
        return selected != self.negate

    def __repr__(self) -> str:
        return f"FlagSelector({self.attribute}, negate={self.negate})"


class PrecisionSelector:
    """Selects resources of one precision."""

    def __init__(self, precision: Any, negate: bool = False) -> None:
        self.precision = Precision.parse(precision)
        self.negate = negate

    def __call__(self, resource: ObjectResource) -> bool:
        return (resource.precision is self.precision) != self.negate

    def __repr__(self) -> str:
        return f"PrecisionSelector({self.precision.value}, negate={self.negate})"


def selector_from_config(config: Mapping[str, Any]) -> ResourceSelector:
    """Build a selector from a configuration mapping."""
    attribute = config.get("attribute")
    negate = bool(config.get("negate", False))
    if attribute in FLAG_ATTRIBUTES:
        return FlagSelector(attribute, negate=negate)
    if attribute == "precision":
        return PrecisionSelector(config.get("value"), negate=negate)
    if attribute in STRING_ATTRIBUTES:
        try:
            match_as = MatchAs(str(config.get("match_as", MatchAs.LITERAL.value)).lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown match_as '{config.get('match_as')}'.") from exc
        return AttributeSelector(
            attribute,
            config.get("value"),
            match_as=match_as,
            case_sensitive=bool(config.get("case_sensitive", True)),
            negate=negate,
        )
    raise ValidationError(f"Unsupported selector attribute '{attribute}'.")
