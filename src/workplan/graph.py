"""Dependency graph construction and cycle detection.

The graph is derived data: it is rebuilt from the work packages on every
scheduling request and never mutated afterwards.
"""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .exceptions import CycleError, DanglingDependencyWarning, Diagnostic, InvalidDateSkipped
from .logger import get_logger
from .models import Dependency, DependencyType, Milestone, Task, WorkPackage, iter_schedulable

logger = get_logger()


class NodeKind(str, Enum):
    """What a graph node stands for."""

    TASK = "task"
    MILESTONE = "milestone"  # Calendar anchor only, never a CPM node


@dataclass(frozen=True)
class ResolvedDependency:
    """A dependency whose predecessor is a node of the graph."""

    predecessor_id: str
    type: DependencyType
    lag_days: int = 0


def _default_ids() -> list[str]:
    return []


def _default_resolved() -> list[ResolvedDependency]:
    return []


@dataclass
class GraphNode:
    """A dated task or milestone plus its resolved edges."""

    item: Task | Milestone
    kind: NodeKind
    start: date
    end: date
    outgoing_dependents: list[str] = field(default_factory=_default_ids)
    incoming_predecessors: list[ResolvedDependency] = field(default_factory=_default_resolved)

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def duration(self) -> int:
        """Whole days between start and end (0 for milestones)."""
        return (self.end - self.start).days


def _default_diagnostics() -> list[Diagnostic]:
    return []


@dataclass
class DependencyGraph:
    """Nodes keyed by id, in document order."""

    nodes: dict[str, GraphNode]
    diagnostics: list[Diagnostic] = field(default_factory=_default_diagnostics)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def ids(self, kind: NodeKind | None = None) -> list[str]:
        """Node ids in document order, optionally restricted to one kind."""
        return [nid for nid, node in self.nodes.items() if kind is None or node.kind == kind]

    def edges(self) -> Iterator[tuple[str, str, ResolvedDependency]]:
        """Yield (predecessor_id, dependent_id, dependency) for every resolved edge."""
        for node in self.nodes.values():
            for dep in node.incoming_predecessors:
                yield dep.predecessor_id, node.id, dep

    def downstream_of(self, seed_ids: Iterable[str]) -> set[str]:
        """Ids reachable from the seeds through at least one edge."""
        reached: set[str] = set()
        queue = deque(sid for sid in seed_ids if sid in self.nodes)
        while queue:
            current = queue.popleft()
            for dependent_id in self.nodes[current].outgoing_dependents:
                if dependent_id not in reached:
                    reached.add(dependent_id)
                    queue.append(dependent_id)
        return reached


def _resolve_dependency(
    dependency: Dependency, nodes: dict[str, GraphNode]
) -> ResolvedDependency | None:
    """Return the dependency as a graph edge, or None if its predecessor is unknown."""
    if dependency.predecessor_id not in nodes:
        return None
    return ResolvedDependency(
        predecessor_id=dependency.predecessor_id,
        type=dependency.type,
        lag_days=dependency.lag_days,
    )


def _make_node(item: Task | Milestone) -> GraphNode | InvalidDateSkipped:
    if isinstance(item, Milestone):
        when = item.when
        if when is None:
            return InvalidDateSkipped(item.id, "missing or unparseable milestone date")
        return GraphNode(item=item, kind=NodeKind.MILESTONE, start=when, end=when)

    start, end = item.start, item.end
    if start is None or end is None:
        return InvalidDateSkipped(item.id, "missing or unparseable start/end date")
    if end < start:
        return InvalidDateSkipped(item.id, f"end date {end} is before start date {start}")
    return GraphNode(item=item, kind=NodeKind.TASK, start=start, end=end)


def build_dependency_graph(
    work_packages: Sequence[WorkPackage],
    *,
    include_milestones: bool = True,
) -> DependencyGraph:
    """Build the dependency graph of all dated tasks (and milestones).

    Items without usable dates and dependencies on unknown ids are left out
    and reported as diagnostics. Duplicate ids are not rejected: the last
    occurrence wins (see find_duplicate_ids).
    """
    nodes: dict[str, GraphNode] = {}
    diagnostics: list[Diagnostic] = []

    for wp in work_packages:
        items: list[Task | Milestone] = [*wp.tasks]
        if include_milestones:
            items.extend(wp.milestones)
        for item in items:
            node = _make_node(item)
            if isinstance(node, InvalidDateSkipped):
                logger.diagnostic(node)
                diagnostics.append(node)
                continue
            nodes[item.id] = node

    for node in nodes.values():
        for dependency in node.item.dependencies:
            resolved = _resolve_dependency(dependency, nodes)
            if resolved is None:
                warning = DanglingDependencyWarning(node.id, dependency.predecessor_id)
                logger.diagnostic(warning)
                diagnostics.append(warning)
                continue
            node.incoming_predecessors.append(resolved)
            predecessor = nodes[resolved.predecessor_id]
            if node.id not in predecessor.outgoing_dependents:
                predecessor.outgoing_dependents.append(node.id)

    logger.debug(
        f"Built dependency graph: {len(nodes)} nodes, "
        f"{sum(len(n.incoming_predecessors) for n in nodes.values())} edges"
    )
    return DependencyGraph(nodes=nodes, diagnostics=diagnostics)


def find_duplicate_ids(work_packages: Sequence[WorkPackage]) -> list[str]:
    """Ids used by more than one task or milestone, in first-seen order."""
    counts = Counter(item.id for item in iter_schedulable(work_packages))
    return [item_id for item_id, count in counts.items() if count > 1]


class _Mark(Enum):
    IN_PROGRESS = 1
    DONE = 2


def topological_order(graph: DependencyGraph, *, start: str | None = None) -> list[str]:
    """Order node ids so every predecessor comes before its dependents.

    Depth-first over predecessor edges; meeting an in-progress node means
    a cycle. The traversal visits every node, so a cycle is found whichever
    node it starts from.

    Args:
        graph: Graph to order
        start: Optional id to start the traversal from

    Returns:
        All node ids in topological order

    Raises:
        CycleError: If the graph contains a cycle
        KeyError: If start is not a node of the graph
    """
    roots = list(graph.nodes)
    if start is not None:
        if start not in graph.nodes:
            raise KeyError(start)
        roots.remove(start)
        roots.insert(0, start)

    marks: dict[str, _Mark] = {}
    order: list[str] = []

    def predecessors(node_id: str) -> Iterator[str]:
        return (dep.predecessor_id for dep in graph.nodes[node_id].incoming_predecessors)

    for root in roots:
        if root in marks:
            continue
        marks[root] = _Mark.IN_PROGRESS
        stack: list[tuple[str, Iterator[str]]] = [(root, predecessors(root))]

        while stack:
            node_id, pending = stack[-1]
            descended = False
            for pred_id in pending:
                mark = marks.get(pred_id)
                if mark is _Mark.IN_PROGRESS:
                    path = [nid for nid, _ in stack]
                    segment = path[path.index(pred_id) :]
                    # path runs dependent -> predecessor; report it in precedence order
                    cycle = [pred_id, *reversed(segment[1:]), pred_id]
                    raise CycleError(pred_id, cycle)
                if mark is None:
                    marks[pred_id] = _Mark.IN_PROGRESS
                    stack.append((pred_id, predecessors(pred_id)))
                    descended = True
                    break
            if not descended:
                stack.pop()
                marks[node_id] = _Mark.DONE
                order.append(node_id)

    return order
