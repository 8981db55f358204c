"""Source map (revision 3) helpers.

Bundles built by concatenation get an *index map*: one section per
chunk, offset by the line the chunk starts on. A chunk whose collaborator
already emitted an inline map keeps that map; any other chunk gets an
identity map pointing each output line at the same line of its source.

Maps are embedded in the artifact as a base64 data URI comment, so a
development build is self-contained.
"""

import base64
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


BASE64_DIGITS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/'

INLINE_MAP_RE = re.compile(
    r'(?:^|\n)[ \t]*(?://|/\*)[#@] sourceMappingURL=data:application/json;'
    r'(?:charset=utf-8;)?base64,([A-Za-z0-9+/=]+)[ \t]*(?:\*/)?[ \t]*\n?$'
)


def encode_vlq(value: int) -> str:
    """Encode one integer as a base64 VLQ."""
    vlq = (-value << 1) | 1 if value < 0 else value << 1
    out = ''
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        out += BASE64_DIGITS[digit]
        if not vlq:
            return out


def identity_map(source: str, text: str) -> Dict[str, Any]:
    """Map every line of text to the same line of source."""
    lines = text.count('\n') + (0 if text.endswith('\n') else 1)
    segments = []
    for line in range(lines):
        # [generated column, source index, source line delta, source column]
        segments.append(''.join(encode_vlq(v) for v in (0, 0, 1 if line else 0, 0)))
    return {
        'version': 3,
        'sources': [source],
        'sourcesContent': [text],
        'names': [],
        'mappings': ';'.join(segments),
    }


def extract_inline_map(text: str) -> Tuple[str, Optional[Dict[str, Any]]]:
    """Split a trailing inline source map comment off text.

    Returns:
        (text without the comment, decoded map or None)
    """
    m = INLINE_MAP_RE.search(text)
    if m is None:
        return text, None
    try:
        data = json.loads(base64.b64decode(m.group(1)).decode('utf-8'))
    except ValueError:
        return text, None
    stripped = text[:m.start()]
    if text[m.start():m.start() + 1] == '\n':
        stripped += '\n'
    return stripped, data


def inline_comment(source_map: Dict[str, Any], css: bool = False) -> str:
    """Render a map as a sourceMappingURL data URI comment."""
    encoded = base64.b64encode(
        json.dumps(source_map, separators=(',', ':')).encode('utf-8')
    ).decode('ascii')
    url = f'data:application/json;charset=utf-8;base64,{encoded}'
    if css:
        return f'/*# sourceMappingURL={url} */'
    return f'//# sourceMappingURL={url}'


def has_inline_map(text: str) -> bool:
    return INLINE_MAP_RE.search(text) is not None


@dataclass
class SourceMapBuilder:
    """Concatenate text chunks while tracking an index source map.

    Example:
        builder = SourceMapBuilder(file='app.js')
        builder.add('src/js/a.js', a_text)
        builder.add('src/js/b.js', b_text)
        output = builder.text + '\\n' + inline_comment(builder.build())
    """

    file: Optional[str] = None
    _chunks: List[str] = field(default_factory=list, repr=False)
    _sections: List[Dict[str, Any]] = field(default_factory=list, repr=False)
    _line: int = field(default=0, repr=False)

    def add(self, source: str, text: str) -> None:
        """Append a chunk produced from source.

        An inline map already present in text is lifted into the section
        and removed from the chunk.
        """
        text, upstream = extract_inline_map(text)
        if text and not text.endswith('\n'):
            text += '\n'
        section_map = upstream if upstream is not None else identity_map(source, text)
        self._sections.append({
            'offset': {'line': self._line, 'column': 0},
            'map': section_map,
        })
        self._chunks.append(text)
        self._line += text.count('\n')

    @property
    def text(self) -> str:
        """The concatenated chunks."""
        return ''.join(self._chunks)

    def build(self) -> Dict[str, Any]:
        """Return the index map covering every chunk added so far."""
        index: Dict[str, Any] = {'version': 3, 'sections': list(self._sections)}
        if self.file:
            index['file'] = self.file
        return index
