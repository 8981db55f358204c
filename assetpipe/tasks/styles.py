"""Compile the Sass entry point into a single CSS bundle.

Development builds embed a source map; production builds are optionally
pruned against the configured pages and always minified.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import rcssmin
import sass

from assetpipe.command import CommandFilter
from assetpipe.exceptions import CommandError
from assetpipe.sourcemap import extract_inline_map, inline_comment
from .context import BuildContext, Reloader


logger = logging.getLogger(__name__)


@dataclass
class CompileStyles:
    """Sass -> vendor prefixes -> (prune + minify | source map) -> css/.

    A compile or collaborator error is logged and the task returns
    without writing, so the previous artifact stays in place and a
    watching process keeps running.
    """

    context: BuildContext
    reloader: Optional[Reloader] = None
    name: str = 'styles'

    @property
    def output(self) -> Path:
        settings = self.context.settings
        return settings.css_dir / settings.style_bundle

    def compile(self) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Compile the entry point.

        Returns:
            (css, source map or None in production)

        Raises:
            sass.CompileError: If the Sass source is invalid
        """
        settings = self.context.settings
        kwargs = dict(
            filename=str(settings.style_entry),
            include_paths=[str(p) for p in settings.sass_include_paths],
            output_style='expanded',
        )
        if self.context.production:
            return sass.compile(**kwargs), None

        css, source_map = sass.compile(
            source_map_filename=str(self.output) + '.map',
            source_map_contents=True,
            omit_source_map_url=True,
            **kwargs,
        )
        return css, json.loads(source_map)

    def prefix(
        self,
        css: str,
        source_map: Optional[Dict[str, Any]] = None,
    ) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Add vendor prefixes for the configured browsers.

        The incoming map is handed to the command as an inline comment and
        the command's own inline map is lifted back off its output. A
        command that doesn't emit one leaves the styles without a map,
        since the Sass map no longer lines up with the rewritten CSS.

        Returns:
            (prefixed css, source map or None)
        """
        settings = self.context.settings
        template = settings.command('prefix')
        if not template:
            logger.debug("No prefix command configured, skipping")
            return css, source_map

        if source_map is not None:
            css = css.rstrip('\n') + '\n' + inline_comment(source_map, css=True) + '\n'

        browsers = ', '.join(settings.compatibility)
        env = {'BROWSERSLIST': browsers} if browsers else {}
        output = CommandFilter(
            template,
            variables={'browsers': browsers},
            env=env,
            cwd=settings.base_path,
        )(css)

        output, updated = extract_inline_map(output)
        if source_map is not None and updated is None:
            logger.warning("Prefix command returned no source map, "
                           "writing %s without one", self.output.name)
        return output, updated

    def prune(self, css: str) -> str:
        """Drop rules not used by any configured page."""
        settings = self.context.settings
        options = settings.css_prune
        template = options.get('command') or settings.command('prune')
        if not template:
            logger.warning("CSS pruning enabled but no prune command configured")
            return css
        return CommandFilter(
            template,
            variables={'pages': list(options.get('pages', []))},
            cwd=settings.base_path,
        )(css)

    def render(self) -> str:
        """Run the whole pipeline and return the artifact text."""
        css, source_map = self.compile()
        css, source_map = self.prefix(css, source_map)

        if self.context.production:
            if self.context.settings.prune_enabled:
                css = self.prune(css)
            return rcssmin.cssmin(css, keep_bang_comments=False)

        if source_map is None:
            return css
        return css.rstrip('\n') + '\n' + inline_comment(source_map, css=True) + '\n'

    def __call__(self) -> Optional[Path]:
        try:
            text = self.render()
        except sass.CompileError as e:
            logger.error("Sass compile error:\n%s", e)
            return None
        except CommandError as e:
            logger.error("Style pipeline failed: %s", e)
            return None

        self.output.parent.mkdir(parents=True, exist_ok=True)
        self.output.write_text(text, encoding='utf-8')
        logger.info("Wrote %s", self.context.display_path(self.output))

        if self.reloader is not None:
            self.reloader.reload(
                self.output.relative_to(self.context.settings.dist).as_posix()
            )
        return self.output
