"""External command filters with variable injection.

Collaborators that have no Python binding (autoprefixer, uncss, esbuild)
are run as shell commands. A command reads its input text on stdin and
writes the transformed text to stdout.

Variables are injected in TWO ways:
1. Format string substitution: {browsers}, {entry}, {target}
2. Environment variables: browsers=..., entry=..., target=...

Example:
    prefix = CommandFilter(
        "npx postcss --use autoprefixer",
        variables={"browsers": "last 2 versions"},
        env={"BROWSERSLIST": "last 2 versions"},
    )
    css = prefix(css)
"""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import CommandError


logger = logging.getLogger(__name__)


@dataclass
class CommandFilter:
    """Shell command that filters text from stdin to stdout.

    Attributes:
        template: Command line with {name} placeholders
        variables: Values for the placeholders, also exported as env vars.
                   Values are shell-quoted before substitution; list
                   values become one shell word per item.
        env: Extra environment variables (not substituted)
        cwd: Working directory for the command
    """

    template: str
    variables: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)
    cwd: Optional[Union[str, Path]] = None

    def format_command(self) -> str:
        """Format the command template with quoted variables.

        Raises:
            KeyError: If the template names an unknown variable
        """
        quoted = {}
        for key, value in self.variables.items():
            if isinstance(value, (list, tuple)):
                # List variable: one shell word per item
                quoted[key] = ' '.join(shlex.quote(str(v)) for v in value)
            else:
                quoted[key] = shlex.quote(str(value))
        try:
            return self.template.format(**quoted)
        except KeyError as e:
            available = ', '.join(sorted(self.variables)) or '(none)'
            raise KeyError(
                f"Unknown variable {e} in command template. "
                f"Available variables: {available}"
            )

    def _build_environment(self) -> Dict[str, str]:
        """Return a copy of os.environ with variables and env added."""
        env = os.environ.copy()
        for key, value in self.variables.items():
            if isinstance(value, (list, tuple)):
                env[key] = ' '.join(str(v) for v in value)
            else:
                env[key] = str(value)
        env.update(self.env)
        return env

    def __call__(self, text: str = '') -> str:
        """Run the command with text on stdin and return its stdout.

        Raises:
            CommandError: If the command exits non-zero
        """
        cmd = self.format_command()
        logger.debug("Running: %s", cmd)

        result = subprocess.run(
            cmd,
            shell=True,
            input=text,
            env=self._build_environment(),
            cwd=str(self.cwd) if self.cwd else None,
            capture_output=True,
            text=True,
        )

        if result.returncode != 0:
            raise CommandError(cmd, result.returncode, result.stderr)

        if result.stderr:
            logger.debug(result.stderr.rstrip())
        return result.stdout

    def __repr__(self) -> str:
        return f"CommandFilter({self.template!r})"
