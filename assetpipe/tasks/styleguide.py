"""Render a static style guide page.

The Markdown source is split into sections on horizontal rules (a line
of three or more dashes). Each section's first heading is its title.

Example index.md:
    # Buttons
    Use `.button` for primary actions.

    ---

    # Colors
    ...

The Jinja2 template receives ``title`` and ``sections``, a list of
mappings with ``title``, ``anchor`` and ``body`` (rendered HTML).
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import markdown
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .context import BuildContext


logger = logging.getLogger(__name__)

SECTION_BREAK_RE = re.compile(r'^-{3,}\s*$', re.MULTILINE)
HEADING_RE = re.compile(r'^#{1,6}\s+(.+?)\s*#*\s*$', re.MULTILINE)


def slugify(text: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', text.lower()).strip('-')
    return slug or 'section'


def split_sections(source: str) -> List[Dict[str, str]]:
    """Split Markdown into titled sections and render each body."""
    sections = []
    for chunk in SECTION_BREAK_RE.split(source):
        if not chunk.strip():
            continue
        heading = HEADING_RE.search(chunk)
        title = heading.group(1) if heading else f'Section {len(sections) + 1}'
        sections.append({
            'title': title,
            'anchor': slugify(title),
            'body': markdown.markdown(chunk, extensions=['fenced_code', 'tables']),
        })
    return sections


@dataclass
class StyleGuide:
    """Markdown content + Jinja2 template -> ``<dist>/<output>``."""

    context: BuildContext
    name: str = 'styleguide'

    @property
    def output(self) -> Path:
        guide = self.context.settings.styleguide
        return self.context.settings.dist / guide.output

    def render(self) -> str:
        guide = self.context.settings.styleguide
        env = Environment(
            loader=FileSystemLoader(str(guide.template.parent)),
            autoescape=select_autoescape(['html']),
        )
        template = env.get_template(guide.template.name)
        sections = split_sections(guide.source.read_text(encoding='utf-8'))
        return template.render(title=guide.title, sections=sections)

    def __call__(self) -> Path:
        html = self.render()
        self.output.parent.mkdir(parents=True, exist_ok=True)
        self.output.write_text(html, encoding='utf-8')
        logger.info("Wrote %s", self.context.display_path(self.output))
        return self.output
