"""Delete the output directory."""

import logging
import shutil
from dataclasses import dataclass

from .context import BuildContext


logger = logging.getLogger(__name__)


@dataclass
class Clean:
    """Recursively remove ``settings.dist``.

    Idempotent: a missing directory is not an error. Any other OSError
    propagates so the enclosing sequence stops before writers start.
    """

    context: BuildContext
    name: str = 'clean'

    def __call__(self) -> None:
        dist = self.context.settings.dist
        try:
            shutil.rmtree(dist)
        except FileNotFoundError:
            logger.debug("Nothing to clean at %s", dist)
            return
        logger.info("Removed %s", self.context.display_path(dist))
