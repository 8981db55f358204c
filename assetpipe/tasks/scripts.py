"""Bundle JavaScript entry points.

Two strategies turn the configured entries into deployable bundles:

- bundle: each entry goes through the bundle command, which resolves its
  module graph. One ``<dist>/js/<entry stem>.js`` per entry.
- concat: each file goes through the transpile command and the results
  are concatenated, in configured order, into ``<dist>/js/<bundle>``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import rjsmin

from assetpipe.command import CommandFilter
from assetpipe.exceptions import CommandError
from assetpipe.patterns import GlobPattern
from assetpipe.sourcemap import SourceMapBuilder, inline_comment
from .context import BuildContext


logger = logging.getLogger(__name__)


@dataclass
class BundleScripts:
    """Transpile, bundle and minify or source-map JavaScript.

    Command failures are logged and leave previous bundles in place.
    A minification error is logged and the unminified text is written.
    """

    context: BuildContext
    name: str = 'scripts'

    def entries(self) -> List[Path]:
        """Expand the configured entries, keeping their order."""
        settings = self.context.settings
        found: List[Path] = []
        for pattern in settings.script_entries:
            matches = [m.path for m in GlobPattern(pattern, settings.base_path).match()]
            if not matches:
                logger.warning("No script matches '%s'", pattern)
            for path in matches:
                if path not in found:
                    found.append(path)
        return found

    def plan(self) -> Dict[Path, List[Path]]:
        """Map each output file to the entries that feed it."""
        settings = self.context.settings
        entries = self.entries()
        if settings.script_strategy == 'concat':
            return {settings.js_dir / settings.script_bundle: entries} if entries else {}
        return {settings.js_dir / f'{entry.stem}.js': [entry] for entry in entries}

    def _command(self, template: Optional[str], source: Path) -> Optional[CommandFilter]:
        if not template:
            return None
        settings = self.context.settings
        return CommandFilter(
            template,
            variables={
                'entry': str(source),
                'source': str(source),
                'target': settings.script_target,
            },
            cwd=settings.base_path,
        )

    def transform(self, source: Path) -> str:
        """Run one source through the strategy's command."""
        settings = self.context.settings
        name = 'bundle' if settings.script_strategy == 'bundle' else 'transpile'
        command = self._command(settings.command(name), source)
        if command is None:
            return source.read_text(encoding='utf-8')
        return command()

    def minify(self, text: str) -> str:
        try:
            return rjsmin.jsmin(text)
        except Exception as e:
            logger.error("Minification failed, writing unminified output: %s", e)
            return text

    def render(self, output: Path, sources: List[Path]) -> str:
        """Build the text of one output bundle."""
        builder = SourceMapBuilder(file=output.name)
        for source in sources:
            builder.add(self.context.display_path(source), self.transform(source))

        if self.context.production:
            return self.minify(builder.text)
        return builder.text + inline_comment(builder.build()) + '\n'

    def __call__(self) -> List[Path]:
        written = []
        for output, sources in self.plan().items():
            try:
                text = self.render(output, sources)
            except CommandError as e:
                logger.error("Script pipeline failed for %s: %s",
                             self.context.display_path(output), e)
                continue

            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(text, encoding='utf-8')
            written.append(output)
            logger.info("Wrote %s", self.context.display_path(output))
        return written
