"""Dependency ordering for schema objects.

Objects are sorted depth-first so every object comes after the objects it
depends on. Resolution is best effort: a cycle stops the branch that closed
it instead of failing the sort, and the cycle is recorded so callers can
decide whether to escalate.

Usage:
    resolver = DependencyResolver()
    resolver.add_object("active_users", "view", depends_on=["users_base"])
    resolver.add_object("users_base", "view")
    resolver.resolve()  # ["users_base", "active_users"]
"""

import logging
from dataclasses import dataclass, field

from structure_sql.errors import DependencyCycleError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvableObject:
    """A named object and the names it depends on.

    Dependency names that are not registered with the resolver are ignored.
    """

    name: str
    object_type: str
    depends_on: tuple[str, ...] = field(default_factory=tuple)


class DependencyResolver:
    """Topological sort over named objects, stable in registration order."""

    def __init__(self) -> None:
        self._objects: dict[str, ResolvableObject] = {}
        self.cycles: list[list[str]] = []

    def __len__(self) -> int:
        return len(self._objects)

    def add_object(self, name: str, object_type: str, depends_on: list[str] | tuple[str, ...] = ()) -> None:
        """Register an object. Re-adding a name replaces the earlier entry."""
        self._objects[name] = ResolvableObject(name, object_type, tuple(depends_on))

    @property
    def cycle_detected(self) -> bool:
        """True when the last resolve() met at least one cycle."""
        return bool(self.cycles)

    def resolve(self, strict: bool = False) -> list[str]:
        """Return object names with dependencies first.

        Args:
            strict: Raise instead of returning a best-effort order on cycles

        Returns:
            Every registered name exactly once

        Raises:
            DependencyCycleError: If ``strict`` and a cycle was found
        """
        self.cycles = []
        ordered: list[str] = []
        visited: set[str] = set()

        for root in self._objects:
            if root in visited:
                continue

            # Stack frames are (name, remaining dependencies); no recursion
            visiting: list[str] = [root]  # Current DFS path, for cycle detection
            on_path: set[str] = {root}
            stack = [(root, iter(self._objects[root].depends_on))]

            while stack:
                name, dependencies = stack[-1]
                for dependency in dependencies:
                    if dependency not in self._objects or dependency in visited:
                        continue
                    if dependency in on_path:
                        # Cycle detected -- abandon this branch
                        self.cycles.append(visiting[visiting.index(dependency):] + [dependency])
                        continue
                    visiting.append(dependency)
                    on_path.add(dependency)
                    stack.append((dependency, iter(self._objects[dependency].depends_on)))
                    break
                else:
                    stack.pop()
                    visiting.pop()
                    on_path.discard(name)
                    visited.add(name)
                    ordered.append(name)

        if self.cycles:
            logger.warning(
                f"Dependency cycles found; order is best effort: "
                f"{'; '.join(' -> '.join(cycle) for cycle in self.cycles)}"
            )
            if strict:
                raise DependencyCycleError(self.cycles)

        return ordered
