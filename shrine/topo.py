"""Topological ordering of dependency graphs."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping


class CycleError(ValueError):
    """Raised when a dependency graph contains a cycle."""

    def __init__(self, stuck: Iterable[str]) -> None:
        self.stuck = list(stuck)
        super().__init__(f"dependency cycle involving: [{' '.join(self.stuck)}]")


def topo_sort(deps: Mapping[str, Iterable[str]]) -> list[str]:
    """Order nodes so that each one comes after its dependencies.

    Dependencies that are not themselves keys of ``deps`` are treated as
    already resolved. Ties are broken alphabetically, so the result is
    deterministic. A cycle raises :class:`CycleError` naming the stuck nodes.
    """
    dependents: dict[str, set[str]] = {node: set() for node in deps}
    indegree: dict[str, int] = dict.fromkeys(deps, 0)

    for node, node_deps in deps.items():
        for dep in node_deps:
            if dep not in deps or node in dependents[dep]:
                continue
            dependents[dep].add(node)
            indegree[node] += 1

    queue = deque(sorted(node for node, degree in indegree.items() if degree == 0))
    order: list[str] = []
    while queue:
        node = queue.popleft()
        order.append(node)
        freed = []
        for dependent in dependents[node]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                freed.append(dependent)
        queue.extend(sorted(freed))

    if len(order) != len(deps):
        raise CycleError(sorted(node for node, degree in indegree.items() if degree > 0))
    return order