"""Shared state handed to every task."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from assetpipe.config import Settings


class Reloader(Protocol):
    """Something that can tell connected browsers to refresh."""

    def reload(self, path: Optional[str] = None) -> None:
        ...


@dataclass(frozen=True)
class BuildContext:
    """Settings and build mode, fixed for the lifetime of the process."""

    settings: Settings
    production: bool = False

    @property
    def mode(self) -> str:
        return 'production' if self.production else 'development'

    def display_path(self, path: Union[str, Path]) -> str:
        """Return path relative to the project root when possible."""
        path = Path(path)
        try:
            return path.relative_to(self.settings.base_path).as_posix()
        except ValueError:
            return str(path)
