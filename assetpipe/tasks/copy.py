"""Mirror static files into the output directory."""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

from assetpipe.patterns import PatternSet
from .context import BuildContext


logger = logging.getLogger(__name__)


@dataclass
class CopyStatic:
    """Copy files matched by ``settings.static`` without transformation.

    Each file keeps its path relative to the base of the pattern that
    matched it, so ``src/**/*`` copies ``src/fonts/a.woff`` to
    ``<dist>/fonts/a.woff``.
    """

    context: BuildContext
    name: str = 'copy'

    @property
    def patterns(self) -> PatternSet:
        settings = self.context.settings
        return PatternSet(settings.static, base_path=settings.base_path)

    def __call__(self) -> List[Path]:
        dist = self.context.settings.dist
        copied = []
        for match in self.patterns.match():
            dest = dist / match.relative
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(match.path, dest)
            copied.append(dest)
        logger.info("Copied %d file(s) to %s",
                    len(copied), self.context.display_path(dist))
        return copied
