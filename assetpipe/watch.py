"""File watchers that re-run tasks and reload connected browsers.

Each category of source files maps to a reaction: a task graph node to
re-run, then a reload signal. Every detected change runs its reaction;
there is no debouncing and no mutual exclusion between runs.

Per category:
    IDLE -> CHANGE_DETECTED -> TASK_RUNNING -> RELOAD_SIGNALED -> IDLE
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, TYPE_CHECKING

from .graph import Node, Runner
from .patterns import GlobPattern, PatternSet

if TYPE_CHECKING:
    from .config import Settings
    from .server import DevServer
    from .tasks.context import Reloader


logger = logging.getLogger(__name__)


class WatchState(Enum):
    """Where a watch reaction is in its cycle."""
    IDLE = "idle"
    CHANGE_DETECTED = "change-detected"
    TASK_RUNNING = "task-running"
    RELOAD_SIGNALED = "reload-signaled"


@dataclass
class WatchRule:
    """Glob patterns for one category of files and what to do on change.

    Attributes:
        name: Category name (static, templates, styles, ...)
        patterns: Glob patterns, relative to the project root or absolute
        task: Node to re-run when a matching file changes
        full_reload: Send a full page reload after the task. Rules whose
                     task injects its own output (styles) leave this off.
    """
    name: str
    patterns: List[str]
    task: Node
    full_reload: bool = True


@dataclass
class Reaction:
    """Callback registered with the server for one rule."""

    rule: WatchRule
    runner: Runner
    reloader: Optional['Reloader'] = None
    state: WatchState = WatchState.IDLE
    runs: int = 0

    def __call__(self) -> bool:
        self.state = WatchState.CHANGE_DETECTED
        logger.info("Change detected in %s files", self.rule.name)

        self.state = WatchState.TASK_RUNNING
        result = self.runner.run(self.rule.task)
        self.runs += 1

        if self.rule.full_reload and self.reloader is not None:
            self.reloader.reload()
        self.state = WatchState.RELOAD_SIGNALED

        self.state = WatchState.IDLE
        return result.succeeded

    def __repr__(self) -> str:
        return f"Reaction({self.rule.name!r} -> {self.rule.task.name!r})"


def default_rules(settings: 'Settings', tasks: Dict[str, Node]) -> List[WatchRule]:
    """Build the standard watch rules for a settings object.

    Template changes re-run the style task and the settings file re-runs
    the script task. Categories without patterns are left out.
    """
    rules = [
        WatchRule('static', list(settings.static), tasks['copy']),
        WatchRule('templates', list(settings.templates), tasks['styles']),
        WatchRule(
            'styles',
            [str(settings.style_entry.parent / '**' / '*.scss'),
             str(settings.style_entry.parent / '**' / '*.sass')],
            tasks['styles'],
            full_reload=False,
        ),
        WatchRule('scripts', _script_patterns(settings), tasks['scripts']),
    ]
    if settings.images_src is not None:
        rules.append(WatchRule(
            'images', [str(settings.images_src / '**' / '*')], tasks['images'],
        ))
    if settings.config_path is not None:
        rules.append(WatchRule(
            'config', [str(settings.config_path)], tasks['scripts'],
        ))
    return [rule for rule in rules if rule.patterns]


def _script_patterns(settings: 'Settings') -> List[str]:
    """Watch every .js file under the directories holding the entries."""
    patterns: List[str] = []
    for entry in settings.script_entries:
        base = GlobPattern(entry, settings.base_path).base
        pattern = str(base / '**' / '*.js')
        if pattern not in patterns:
            patterns.append(pattern)
    return patterns


@dataclass
class Watcher:
    """Register watch rules with the dev server."""

    settings: 'Settings'
    rules: List[WatchRule]
    runner: Runner = field(default_factory=Runner)
    reactions: List[Reaction] = field(default_factory=list)

    def register(self, server: 'DevServer') -> List[Reaction]:
        """Register one watch per pattern root of every rule.

        Directories are walked by the server's poller; the ignore callback
        filters out files the rule's patterns don't select. A pattern
        naming a single file watches that file directly.
        """
        for rule in self.rules:
            reaction = Reaction(rule, self.runner, server.reloader)
            self.reactions.append(reaction)

            selected = PatternSet(rule.patterns, base_path=self.settings.base_path)
            for include in selected.includes:
                target = self._watch_target(include)
                logger.debug("Watching %s for %s", target, rule.name)
                server.watch(
                    target,
                    reaction,
                    ignore=lambda path, selected=selected: not selected.matches(path),
                )
        return self.reactions

    @staticmethod
    def _watch_target(pattern: GlobPattern) -> str:
        if pattern.is_literal:
            return str(pattern.base / pattern.glob)
        return str(pattern.base)
