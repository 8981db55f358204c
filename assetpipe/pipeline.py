"""The build orchestrator: named tasks and how they compose.

    build   = clean -> (styles | scripts | images | copy) -> styleguide
    default = build -> server -> watch

``styleguide`` only exists when the settings configure one.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .graph import Leaf, Node, Parallel, RunResult, Runner, Series
from .server import DevServer
from .tasks import (
    BuildContext, Clean, CopyStatic, CompileStyles, BundleScripts,
    ProcessImages, StyleGuide,
)
from .watch import Watcher, default_rules


logger = logging.getLogger(__name__)


def first_line(doc: Optional[str]) -> str:
    """extract first non-blank line from text, to extract docstring title"""
    if doc is not None:
        for line in doc.splitlines():
            striped = line.strip()
            if striped:
                return striped
    return ''


@dataclass
class Pipeline:
    """Registry of named task graph nodes built from one BuildContext.

    Example:
        pipeline = Pipeline(BuildContext(load_settings('config.yml')))
        result = pipeline.run(['build'])
    """

    context: BuildContext
    dev_server: Optional[DevServer] = None
    runner: Runner = field(default_factory=Runner)
    tasks: Dict[str, Node] = field(init=False, default_factory=dict)
    watcher: Optional[Watcher] = field(init=False, default=None)

    def __post_init__(self):
        if self.dev_server is None:
            self.dev_server = DevServer(self.context)
        self._register_leaves()
        self._register_graph()

    def add(self, node: Node) -> Node:
        if node.name in self.tasks:
            raise ValueError(f"Task '{node.name}' is already registered")
        self.tasks[node.name] = node
        return node

    def _leaf(self, task) -> Leaf:
        return self.add(Leaf(task.name, task, doc=first_line(type(task).__doc__)))

    def _register_leaves(self) -> None:
        context = self.context
        self._leaf(Clean(context))
        self._leaf(CopyStatic(context))
        self._leaf(CompileStyles(context, reloader=self.dev_server.reloader))
        self._leaf(BundleScripts(context))
        self._leaf(ProcessImages(context))
        if context.settings.styleguide is not None:
            self._leaf(StyleGuide(context))

        self.add(Leaf('server', self.start_server,
                      doc='Start the development server with live reload'))
        self.add(Leaf('watch', self.watch,
                      doc='Re-run tasks and reload browsers when sources change'))

    def _register_graph(self) -> None:
        tasks = self.tasks
        steps: List[Node] = [
            tasks['clean'],
            Parallel('assets', [
                tasks['styles'], tasks['scripts'], tasks['images'], tasks['copy'],
            ]),
        ]
        if 'styleguide' in tasks:
            steps.append(tasks['styleguide'])

        build = self.add(Series(
            'build', steps,
            doc='Clean the output directory and rebuild every asset',
        ))
        self.add(Series(
            'default', [build, tasks['server'], tasks['watch']],
            doc='Build, serve and watch for changes',
        ))

    def _register_watches(self) -> Watcher:
        """Register the watch rules with the dev server, once."""
        if self.watcher is None:
            settings = self.context.settings
            self.watcher = Watcher(settings, default_rules(settings, self.tasks),
                                   runner=self.runner)
            self.watcher.register(self.dev_server)
            logger.info("Watching %d categories for changes", len(self.watcher.rules))
        return self.watcher

    def start_server(self) -> None:
        """Register the watch rules, then start serving."""
        self._register_watches()
        self.dev_server.start()

    def watch(self) -> None:
        """Serve with the watch rules registered until interrupted."""
        self.start_server()
        self.dev_server.wait()

    def get(self, name: str) -> Node:
        try:
            return self.tasks[name]
        except KeyError:
            available = ', '.join(sorted(self.tasks))
            raise KeyError(f"Unknown task '{name}'. Available tasks: {available}")

    def run(self, names: Iterable[str]) -> RunResult:
        """Run the named tasks one after the other.

        Stops at the first task that fails.

        Raises:
            KeyError: If a name is not a registered task
        """
        nodes = [self.get(name) for name in names]
        total = RunResult()
        for node in nodes:
            result = self.runner.run(node)
            total.merge(result)
            if not result.succeeded:
                break
        return total

    def describe(self) -> List[str]:
        """One line per task: name and doc."""
        width = max(len(name) for name in self.tasks)
        return [
            f"{name.ljust(width)}  {node.doc or ''}".rstrip()
            for name, node in self.tasks.items()
        ]
