"""Tests for dependency ordering and cycle handling."""

import pytest

from structure_sql.dependency_resolver import DependencyResolver
from structure_sql.errors import DependencyCycleError


class TestResolveOrder:
    """Topological order."""

    def test_independent_objects_keep_registration_order(self) -> None:
        """Without dependencies the output is the input order."""
        resolver = DependencyResolver()
        for name in ["c", "a", "b"]:
            resolver.add_object(name, "view")

        assert resolver.resolve() == ["c", "a", "b"]

    def test_dependency_comes_first(self) -> None:
        """B depends on A, so A is emitted before B."""
        resolver = DependencyResolver()
        resolver.add_object("b", "view", depends_on=["a"])
        resolver.add_object("a", "view")

        order = resolver.resolve()
        assert order.index("a") < order.index("b")

    def test_chain(self) -> None:
        """Transitive dependencies are respected."""
        resolver = DependencyResolver()
        resolver.add_object("top", "view", depends_on=["middle"])
        resolver.add_object("middle", "view", depends_on=["base"])
        resolver.add_object("base", "table")

        assert resolver.resolve() == ["base", "middle", "top"]

    def test_unknown_dependencies_are_ignored(self) -> None:
        """Names outside the set do not appear in the result."""
        resolver = DependencyResolver()
        resolver.add_object("report", "view", depends_on=["users", "missing"])

        assert resolver.resolve() == ["report"]

    def test_result_is_a_permutation(self) -> None:
        """Every registered name appears exactly once."""
        resolver = DependencyResolver()
        names = [f"v{i}" for i in range(20)]
        for i, name in enumerate(names):
            resolver.add_object(name, "view", depends_on=names[i + 1:i + 3])

        order = resolver.resolve()
        assert sorted(order) == sorted(names)
        assert len(resolver) == 20

    def test_long_chain(self) -> None:
        """Chains far deeper than the recursion limit still resolve."""
        resolver = DependencyResolver()
        names = [f"v{i}" for i in range(3000)]
        for i, name in enumerate(names):
            resolver.add_object(name, "view", depends_on=names[i + 1:i + 2])

        assert resolver.resolve() == list(reversed(names))
        assert not resolver.cycle_detected

    def test_long_cycle_is_recorded(self) -> None:
        """A cycle closing a deep chain is reported once."""
        resolver = DependencyResolver()
        names = [f"v{i}" for i in range(3000)]
        for i, name in enumerate(names):
            resolver.add_object(name, "view", depends_on=[names[(i + 1) % len(names)]])

        order = resolver.resolve()

        assert sorted(order) == sorted(names)
        assert resolver.cycles == [names + ["v0"]]

    def test_readding_replaces(self) -> None:
        """Adding a name twice keeps the latest dependencies."""
        resolver = DependencyResolver()
        resolver.add_object("a", "view", depends_on=["b"])
        resolver.add_object("b", "view")
        resolver.add_object("a", "view")

        assert resolver.resolve() == ["a", "b"]


class TestCycles:
    """Best-effort and strict cycle handling."""

    def _cyclic(self) -> DependencyResolver:
        resolver = DependencyResolver()
        resolver.add_object("a", "view", depends_on=["b"])
        resolver.add_object("b", "view", depends_on=["a"])
        resolver.add_object("c", "view")
        return resolver

    def test_best_effort_returns_every_name(self) -> None:
        """A cycle does not abort the sort."""
        resolver = self._cyclic()
        order = resolver.resolve()

        assert sorted(order) == ["a", "b", "c"]
        assert resolver.cycle_detected
        assert resolver.cycles == [["a", "b", "a"]]

    def test_acyclic_reports_no_cycle(self) -> None:
        """cycle_detected is False when the graph is a DAG."""
        resolver = DependencyResolver()
        resolver.add_object("a", "view")
        resolver.resolve()

        assert not resolver.cycle_detected

    def test_strict_raises(self) -> None:
        """Strict mode escalates cycles."""
        with pytest.raises(DependencyCycleError, match="a -> b -> a") as exc_info:
            self._cyclic().resolve(strict=True)

        assert exc_info.value.cycles == [["a", "b", "a"]]

    def test_self_dependency(self) -> None:
        """An object depending on itself is a one-node cycle."""
        resolver = DependencyResolver()
        resolver.add_object("a", "view", depends_on=["a"])

        assert resolver.resolve() == ["a"]
        assert resolver.cycles == [["a", "a"]]
