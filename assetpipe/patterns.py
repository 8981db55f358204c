"""Glob patterns for selecting source files.

Pattern syntax:
- * - Any run of non-slash characters
- ** - Any number of directories (including none)
- ? - A single non-slash character
- [abc] / [!abc] - One character from (or not from) the set
- !pattern - Exclude files matched by pattern (only in a PatternSet)

Each pattern has a *base*: its leading path segments that contain no
wildcards. Matched files keep their path relative to the base when they
are mirrored into the output directory.

Example:
    patterns = PatternSet(["src/**/*", "!src/scss/**/*"], base_path=root)
    for match in patterns.match():
        print(match.relative)  # 'index.html', 'fonts/icons.woff', ...
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Generator, List, Optional, Union
import re


MAGIC_CHARS = ('*', '?', '[')


@dataclass
class SourceMatch:
    """A single matched file.

    Attributes:
        path: Absolute path of the file
        relative: Path relative to the pattern base
    """
    path: Path
    relative: Path


@dataclass
class GlobPattern:
    """A single glob pattern resolved against a base path.

    Attributes:
        pattern: Pattern string, relative to base_path or absolute
        base_path: Directory relative patterns are resolved against
    """
    pattern: str
    base_path: Optional[Path] = None

    # Computed fields
    _base: Path = field(init=False, repr=False, default=None)
    _glob_pattern: str = field(init=False, repr=False, default='')
    _regex: Optional[re.Pattern] = field(init=False, repr=False, default=None)

    def __post_init__(self):
        if self.base_path is None:
            self.base_path = Path.cwd()
        elif isinstance(self.base_path, str):
            self.base_path = Path(self.base_path)
        self._compile_pattern()

    def _compile_pattern(self) -> None:
        """Split pattern into a literal base and a glob, compile the regex."""
        parts = self.pattern.replace('\\', '/').split('/')

        literal = []
        for part in parts:
            if any(c in part for c in MAGIC_CHARS):
                break
            literal.append(part)
        rest = parts[len(literal):]

        # A pattern without wildcards names a single file; its base is
        # the file's directory so the file keeps its own name.
        if not rest and literal:
            rest = [literal.pop()]

        joined = '/'.join(literal)
        if not joined:
            joined = '/' if self.pattern.startswith('/') else '.'
        base = Path(joined)
        if not base.is_absolute():
            base = self.base_path / base
        self._base = base

        glob_parts = list(rest)
        if glob_parts[-1] == '**':
            # pathlib yields only directories for a trailing **
            glob_parts.append('*')
        self._glob_pattern = '/'.join(glob_parts)
        self._regex = re.compile('^' + self._to_regex(rest) + '$')

    @staticmethod
    def _to_regex(parts: List[str]) -> str:
        """Convert glob path segments to a regex over '/'-joined paths."""
        out = ''
        for i, part in enumerate(parts):
            last = i == len(parts) - 1
            if part == '**':
                # Zero or more whole directories
                out += '.*' if last else '(?:[^/]+/)*'
                continue
            segment = GlobPattern._segment_regex(part)
            out += segment if last else segment + '/'
        return out

    @staticmethod
    def _segment_regex(part: str) -> str:
        """Translate one path segment: *, ? and [...] / [!...] classes."""
        out = ''
        i = 0
        while i < len(part):
            char = part[i]
            i += 1
            if char == '*':
                out += '[^/]*'
            elif char == '?':
                out += '[^/]'
            elif char == '[':
                end = i
                if end < len(part) and part[end] == '!':
                    end += 1
                if end < len(part) and part[end] == ']':
                    end += 1
                end = part.find(']', end)
                if end == -1:
                    # Unclosed bracket matches itself
                    out += re.escape(char)
                    continue
                body = part[i:end].replace('\\', '\\\\')
                if body.startswith('!'):
                    body = '^/' + body[1:]
                elif body.startswith('^'):
                    body = '\\' + body
                out += f'[{body}]'
                i = end + 1
            else:
                out += re.escape(char)
        return out

    @property
    def glob(self) -> str:
        """The wildcard part of the pattern, relative to the base."""
        return self._glob_pattern

    @property
    def is_literal(self) -> bool:
        """True if the pattern names a single file."""
        return not any(c in self.pattern for c in MAGIC_CHARS)

    @property
    def base(self) -> Path:
        """Directory that matched paths are made relative to."""
        return self._base

    def matches(self, path: Union[str, Path]) -> bool:
        """Return True if an absolute path matches this pattern."""
        path = Path(path)
        try:
            relative = path.relative_to(self._base)
        except ValueError:
            return False
        return bool(self._regex.match(relative.as_posix()))

    def match(self) -> Generator[SourceMatch, None, None]:
        """Yield files (never directories) matching the pattern."""
        if not self._base.is_dir():
            return
        for path in sorted(self._base.glob(self._glob_pattern)):
            if not path.is_file():
                continue
            relative = path.relative_to(self._base)
            if self._regex.match(relative.as_posix()):
                yield SourceMatch(path=path, relative=relative)


@dataclass
class PatternSet:
    """An ordered list of include patterns with ``!`` exclusions.

    A file is selected when an include pattern matches it and no
    exclusion pattern does. Files matched by several include patterns
    are yielded once, for the first pattern that matched.
    """
    patterns: List[str]
    base_path: Optional[Path] = None

    includes: List[GlobPattern] = field(init=False, repr=False, default_factory=list)
    excludes: List[GlobPattern] = field(init=False, repr=False, default_factory=list)

    def __post_init__(self):
        if self.base_path is None:
            self.base_path = Path.cwd()
        for pattern in self.patterns:
            if pattern.startswith('!'):
                self.excludes.append(GlobPattern(pattern[1:], self.base_path))
            else:
                self.includes.append(GlobPattern(pattern, self.base_path))

    def is_excluded(self, path: Union[str, Path]) -> bool:
        return any(ex.matches(path) for ex in self.excludes)

    def matches(self, path: Union[str, Path]) -> bool:
        """Return True if the path is selected by this set."""
        return (
            any(inc.matches(path) for inc in self.includes)
            and not self.is_excluded(path)
        )

    def match(self) -> Generator[SourceMatch, None, None]:
        seen = set()
        for include in self.includes:
            for found in include.match():
                if found.path in seen or self.is_excluded(found.path):
                    continue
                seen.add(found.path)
                yield found
