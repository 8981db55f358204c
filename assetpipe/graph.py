"""Static task graph with sequence and parallel composition.

A graph is built once at startup from three node types:
- Leaf: a named callable doing one unit of work
- Series: members run in order; stops at the first failure
- Parallel: members start together; completes when all complete

Leaves signal completion by returning and failure by raising. The Runner
records failures instead of propagating them, so a failed member of a
Parallel never affects its siblings.

Example:
    build = Series('build', [
        Leaf('clean', clean),
        Parallel('assets', [Leaf('styles', styles), Leaf('scripts', scripts)]),
    ])
    result = Runner().run(build)
    if not result.succeeded:
        for failure in result.failures:
            print(failure.name, failure.error)
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional


logger = logging.getLogger(__name__)


class Node(ABC):
    """Base class for task graph nodes."""

    name: str
    doc: Optional[str]

    @abstractmethod
    def leaves(self) -> List['Leaf']:
        """Return every leaf reachable from this node, in graph order."""
        pass


@dataclass
class Leaf(Node):
    """A task with no sub-tasks of its own."""

    name: str
    func: Callable[[], Any]
    doc: Optional[str] = None

    def leaves(self) -> List['Leaf']:
        return [self]


@dataclass
class Series(Node):
    """Run steps strictly in order."""

    name: str
    steps: List[Node] = field(default_factory=list)
    doc: Optional[str] = None

    def leaves(self) -> List[Leaf]:
        return [leaf for step in self.steps for leaf in step.leaves()]


@dataclass
class Parallel(Node):
    """Start members concurrently, wait for all of them."""

    name: str
    members: List[Node] = field(default_factory=list)
    doc: Optional[str] = None

    def leaves(self) -> List[Leaf]:
        return [leaf for member in self.members for leaf in member.leaves()]


@dataclass
class TaskFailure:
    """A leaf that raised instead of completing."""
    name: str
    error: BaseException


@dataclass
class RunResult:
    """Result of running a node with the Runner."""

    completed: List[str] = field(default_factory=list)
    """Names of leaves that completed, in completion order."""

    failures: List[TaskFailure] = field(default_factory=list)
    """Leaves that raised."""

    skipped: List[str] = field(default_factory=list)
    """Leaves not started because an earlier step of a Series failed."""

    @property
    def succeeded(self) -> bool:
        """Return True if no leaf failed."""
        return not self.failures

    def merge(self, other: 'RunResult') -> None:
        self.completed.extend(other.completed)
        self.failures.extend(other.failures)
        self.skipped.extend(other.skipped)


class Runner:
    """Execute task graph nodes.

    Parallel members run on a thread pool; each Parallel gets its own pool
    sized to its member count, so nested Parallels never starve.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()

    def run(self, node: Node) -> RunResult:
        """Run a node and everything under it.

        Returns:
            RunResult listing completed, failed and skipped leaves
        """
        result = RunResult()
        self._run(node, result)
        return result

    def _run(self, node: Node, result: RunResult) -> bool:
        if isinstance(node, Leaf):
            return self._run_leaf(node, result)
        if isinstance(node, Series):
            return self._run_series(node, result)
        if isinstance(node, Parallel):
            return self._run_parallel(node, result)
        raise TypeError(f"Unknown task node: {node!r}")

    def _run_leaf(self, leaf: Leaf, result: RunResult) -> bool:
        logger.info("Starting '%s'...", leaf.name)
        started = self._clock()
        try:
            leaf.func()
        except Exception as e:
            logger.error("'%s' errored after %s: %s",
                         leaf.name, self._elapsed(started), e)
            with self._lock:
                result.failures.append(TaskFailure(leaf.name, e))
            return False

        logger.info("Finished '%s' after %s", leaf.name, self._elapsed(started))
        with self._lock:
            result.completed.append(leaf.name)
        return True

    def _run_series(self, series: Series, result: RunResult) -> bool:
        for i, step in enumerate(series.steps):
            if not self._run(step, result):
                remaining = [
                    leaf.name
                    for later in series.steps[i + 1:]
                    for leaf in later.leaves()
                ]
                with self._lock:
                    result.skipped.extend(remaining)
                return False
        return True

    def _run_parallel(self, parallel: Parallel, result: RunResult) -> bool:
        if not parallel.members:
            return True
        with ThreadPoolExecutor(max_workers=len(parallel.members)) as pool:
            futures = [
                pool.submit(self._run, member, result)
                for member in parallel.members
            ]
            outcomes = [future.result() for future in futures]
        return all(outcomes)

    def _elapsed(self, started: float) -> str:
        seconds = self._clock() - started
        if seconds < 1:
            return f"{seconds * 1000:.0f} ms"
        return f"{seconds:.2f} s"
