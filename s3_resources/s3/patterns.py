"""Include/exclude pattern helpers for S3 key paths."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Tuple, Union

from ..exceptions import PatternConfigurationError

DEFAULT_DELIMITER = "/"
DEEP_TREE_MATCH = "**"
MAX_DEPTH = sys.maxsize

TokenizedPath = Tuple[str, ...]

_PATTERN_SEPARATORS = re.compile(r"[,\s]+")


class SegmentMatcher:
    """Provides cached regular-expression matching of single path segments."""

    def __init__(self) -> None:
        self._pattern_cache: Dict[Tuple[str, bool], re.Pattern[str]] = {}

    def matches(self, token: str, segment: str, case_sensitive: bool = True) -> bool:
        """Return True if the segment matches the wildcard token."""
        if not has_wildcards(token):
            if case_sensitive:
                return token == segment
            return token.casefold() == segment.casefold()
        return self._get_compiled_pattern(token, case_sensitive).fullmatch(segment) is not None

    def _get_compiled_pattern(self, token: str, case_sensitive: bool) -> re.Pattern[str]:
        """Fetch or compile the regex for a wildcard token."""
        cache_key = (token, case_sensitive)
        compiled = self._pattern_cache.get(cache_key)
        if compiled is None:
            parts: List[str] = []
            for char in token:
                if char == "*":
                    parts.append(".*")
                elif char == "?":
                    parts.append(".")
                else:
                    parts.append(re.escape(char))
            flags = re.DOTALL if case_sensitive else re.DOTALL | re.IGNORECASE
            compiled = re.compile("".join(parts), flags)
            self._pattern_cache[cache_key] = compiled
        return compiled


_MATCHER = SegmentMatcher()


def has_wildcards(token: str) -> bool:
    return "*" in token or "?" in token


def tokenize_path(value: Optional[str], delimiter: str = DEFAULT_DELIMITER) -> TokenizedPath:
    """Split a key or prefix into segments, ignoring empty segments."""
    if not value:
        return ()
    return tuple(segment for segment in value.split(delimiter) if segment)


def _match_tokens(pattern: TokenizedPath, path: TokenizedPath, case_sensitive: bool) -> bool:
    """Match a whole path against a tokenized pattern, honouring ``**``."""
    pat_start, pat_end = 0, len(pattern) - 1
    str_start, str_end = 0, len(path) - 1

    # leading segments up to the first '**'
    while pat_start <= pat_end and str_start <= str_end:
        token = pattern[pat_start]
        if token == DEEP_TREE_MATCH:
            break
        if not _MATCHER.matches(token, path[str_start], case_sensitive):
            return False
        pat_start += 1
        str_start += 1

    if str_start > str_end:
        return all(token == DEEP_TREE_MATCH for token in pattern[pat_start:pat_end + 1])
    if pat_start > pat_end:
        return False

    # trailing segments up to the last '**'
    while pat_start <= pat_end and str_start <= str_end:
        token = pattern[pat_end]
        if token == DEEP_TREE_MATCH:
            break
        if not _MATCHER.matches(token, path[str_end], case_sensitive):
            return False
        pat_end -= 1
        str_end -= 1

    if str_start > str_end:
        return all(token == DEEP_TREE_MATCH for token in pattern[pat_start:pat_end + 1])

    # segments between two '**' must occur somewhere in the remaining path
    while pat_start != pat_end and str_start <= str_end:
        next_deep = -1
        for index in range(pat_start + 1, pat_end + 1):
            if pattern[index] == DEEP_TREE_MATCH:
                next_deep = index
                break
        if next_deep == pat_start + 1:
            pat_start += 1
            continue

        pat_length = next_deep - pat_start - 1
        str_length = str_end - str_start + 1
        found = -1
        for offset in range(str_length - pat_length + 1):
            if all(
                _MATCHER.matches(pattern[pat_start + j + 1], path[str_start + offset + j], case_sensitive)
                for j in range(pat_length)
            ):
                found = str_start + offset
                break
        if found == -1:
            return False

        pat_start = next_deep
        str_start = found + pat_length

    return all(token == DEEP_TREE_MATCH for token in pattern[pat_start:pat_end + 1])


def _match_token_start(pattern: TokenizedPath, path: TokenizedPath, case_sensitive: bool) -> bool:
    """Return True if some path beginning with ``path`` could match ``pattern``."""
    pat_index = 0
    str_index = 0
    while pat_index < len(pattern) and str_index < len(path):
        token = pattern[pat_index]
        if token == DEEP_TREE_MATCH:
            break
        if not _MATCHER.matches(token, path[str_index], case_sensitive):
            return False
        pat_index += 1
        str_index += 1
    # path exhausted, or the pattern reached a '**' that can absorb the rest
    return str_index >= len(path) or pat_index < len(pattern)


@dataclass(frozen=True)
class TokenizedPattern:
    """A glob pattern split into path segments."""

    pattern: str
    tokens: TokenizedPath
    delimiter: str = DEFAULT_DELIMITER

    @classmethod
    def parse(cls, pattern: str, delimiter: str = DEFAULT_DELIMITER) -> "TokenizedPattern":
        tokens = tokenize_path(pattern, delimiter)
        return cls(pattern=delimiter.join(tokens), tokens=tokens, delimiter=delimiter)

    def depth(self) -> int:
        """Return the number of segments, or ``MAX_DEPTH`` for deep patterns."""
        if self.contains_deep_wildcard():
            return MAX_DEPTH
        return len(self.tokens)

    def contains_deep_wildcard(self) -> bool:
        return DEEP_TREE_MATCH in self.tokens

    def matches(self, path: TokenizedPath, case_sensitive: bool = True) -> bool:
        return _match_tokens(self.tokens, path, case_sensitive)

    def matches_prefix_of(self, path: TokenizedPath, case_sensitive: bool = True) -> bool:
        return _match_token_start(self.tokens, path, case_sensitive)

    def without_last_segment(self) -> "TokenizedPattern":
        tokens = self.tokens[:-1]
        return TokenizedPattern(pattern=self.delimiter.join(tokens), tokens=tokens, delimiter=self.delimiter)

    def trim_wildcard_suffix(self) -> TokenizedPath:
        """Return the literal segments preceding the first wildcard segment."""
        literal: List[str] = []
        for token in self.tokens:
            if has_wildcards(token):
                break
            literal.append(token)
        return tuple(literal)

    def min_match_depth(self) -> int:
        """Return the fewest segments a matching path can have."""
        return sum(1 for token in self.tokens if token != DEEP_TREE_MATCH)

    def literal_directory(self) -> TokenizedPath:
        """Return the deepest literal directory containing every match of this pattern."""
        literal = self.trim_wildcard_suffix()
        return literal[:max(self.min_match_depth() - 1, 0)]

    def excludes_subtree(self, path: TokenizedPath, case_sensitive: bool = True) -> bool:
        """Return True if every path beneath ``path`` matches this pattern."""
        if len(self.tokens) < 2 or self.tokens[-1] != DEEP_TREE_MATCH:
            return False
        return _match_tokens(self.tokens[:-1], path, case_sensitive)

    def __str__(self) -> str:
        return self.pattern


class PatternSet(NamedTuple):
    """Tokenized include and exclude patterns."""

    includes: FrozenSet[TokenizedPattern]
    excludes: FrozenSet[TokenizedPattern]

    def is_empty(self) -> bool:
        return not self.includes and not self.excludes

    def max_relevant_depth(self) -> int:
        """Return the deepest path an include can match; unbounded without includes."""
        if not self.includes:
            return MAX_DEPTH
        return max(include.depth() for include in self.includes)

    def allows(self, path: TokenizedPath, case_sensitive: bool = True) -> bool:
        """Return True if the path is included and not excluded."""
        if self.includes and not matches_any(self.includes, path, case_sensitive):
            return False
        return not matches_any(self.excludes, path, case_sensitive)


def matches_any(patterns: Iterable[TokenizedPattern], path: TokenizedPath, case_sensitive: bool = True) -> bool:
    return any(pattern.matches(path, case_sensitive) for pattern in patterns)


def _tokenize_all(raw: Optional[Iterable[str]], delimiter: str, kind: str) -> FrozenSet[TokenizedPattern]:
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        raw = split_patterns(raw)
    result = set()
    for pattern in raw:
        if not isinstance(pattern, str):
            raise PatternConfigurationError(f"{kind} pattern must be a string, got {pattern!r}.")
        if not pattern.strip():
            continue
        result.add(TokenizedPattern.parse(pattern.strip(), delimiter))
    return frozenset(result)


def tokenize(
    raw_includes: Optional[Iterable[str]],
    raw_excludes: Optional[Iterable[str]],
    delimiter: str = DEFAULT_DELIMITER,
) -> PatternSet:
    """Tokenize raw include/exclude globs on the given delimiter."""
    if not isinstance(delimiter, str) or not delimiter:
        raise PatternConfigurationError("Delimiter must be a non-empty string.")
    return PatternSet(
        includes=_tokenize_all(raw_includes, delimiter, "Include"),
        excludes=_tokenize_all(raw_excludes, delimiter, "Exclude"),
    )


def split_patterns(value: Optional[str]) -> List[str]:
    """Split a comma and/or whitespace separated list of patterns."""
    if not value:
        return []
    return [pattern for pattern in _PATTERN_SEPARATORS.split(value) if pattern]


def read_pattern_file(path: Union[str, Path]) -> List[str]:
    """Read one pattern per line, ignoring blank lines and ``#`` comments."""
    file_path = Path(path)
    try:
        lines = file_path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise PatternConfigurationError(f"Unable to read pattern file {file_path}: {exc}") from exc
    return [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]
