"""Tests for the best-first resolver.

Covers the end-to-end scenarios (compatible ranges, conflicting top-level
pins, unsatisfiable transitive pins, prerelease policy), backtracking, the
nudge callback and pluggable cost functions.
"""

from __future__ import annotations

import pytest

from versolve.core.solver import (
    TOP_LEVEL,
    DependencyCache,
    ResolutionPriority,
    ResolveOptions,
    Resolver,
    ResolverState,
    pending_lower_bound,
    prefer_latest,
)
from versolve.exceptions import (
    ResolutionError,
    SolverInvariantError,
    VersolveError,
)


def _constraints(cache: DependencyCache, *raw: str):
    return [cache.get_constraint_from_string(r) for r in raw]


@pytest.fixture
def backtracking_cache(make_cache) -> DependencyCache:
    """x@1.0.0 needs y@=1.0.0, x@1.1.0 needs y@=2.0.0, z needs y@=2.0.0."""
    return make_cache({
        "x": [
            ("1.0.0", ["y"], ["y@=1.0.0"]),
            ("1.1.0", ["y"], ["y@=2.0.0"]),
        ],
        "y": ["1.0.0", "2.0.0"],
        "z": [("1.0.0", ["y"], ["y@=2.0.0"])],
    })


class TestScenarios:
    """The reference scenarios."""

    def test_compatible_range(self, make_cache) -> None:
        """foo@1.x admits 1.0.0 and 1.1.0 but never 2.0.0."""
        cache = make_cache({"foo": ["1.0.0", "1.1.0", "2.0.0"]})
        result = Resolver(cache).resolve(["foo"], _constraints(cache, "foo@1.x"))
        assert result["foo"] in {"1.0.0", "1.1.0"}
        assert set(result) == {"foo"}

    def test_conflicting_top_level_pins(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0", "2.0.0"]})
        with pytest.raises(ResolutionError) as excinfo:
            Resolver(cache).resolve(
                ["foo"], _constraints(cache, "foo@=1.0.0", "foo@=2.0.0")
            )
        assert excinfo.value.package == "foo"
        assert "foo@=1.0.0" in str(excinfo.value)
        assert "foo@=2.0.0" in str(excinfo.value)

    def test_unsatisfiable_transitive_pin(self, make_cache) -> None:
        cache = make_cache({
            "foo": [("1.0.0", ["bar"], ["bar@=1.0.0"])],
            "bar": ["2.0.0"],
        })
        with pytest.raises(ResolutionError) as excinfo:
            Resolver(cache).resolve(["foo"])
        assert excinfo.value.package == "bar"
        assert "constraints on bar cannot be satisfied" in str(excinfo.value)
        assert "bar@=1.0.0 <- foo@1.0.0 <- top level" in str(excinfo.value)

    def test_prerelease_not_selected_by_default(self, make_cache) -> None:
        cache = make_cache({"foo": ["0.9.0", "1.0.0-rc1"]})
        result = Resolver(cache).resolve(["foo"], _constraints(cache, "foo"))
        assert result == {"foo": "0.9.0"}

    def test_only_prerelease_is_unsatisfiable(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0-rc1"]})
        with pytest.raises(ResolutionError):
            Resolver(cache).resolve(["foo"], _constraints(cache, "foo"))

    def test_top_level_prerelease_is_selectable_everywhere(self, make_cache) -> None:
        """An explicit top-level prerelease also satisfies other any-reasonable constraints."""
        cache = make_cache({
            "foo": ["0.9.0", "1.0.0-rc1"],
            "bar": [("1.0.0", ["foo"], ["foo"])],
        })
        result = Resolver(cache).resolve(
            ["foo", "bar"], _constraints(cache, "foo@=1.0.0-rc1")
        )
        assert result == {"foo": "1.0.0-rc1", "bar": "1.0.0"}

    def test_use_rcs_accepts_any_prerelease(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0-rc1"]})
        result = Resolver(cache).resolve(
            ["foo"], _constraints(cache, "foo"), ResolveOptions(use_rcs=True)
        )
        assert result == {"foo": "1.0.0-rc1"}

    def test_prerelease_from_dependency_does_not_count(self, make_cache) -> None:
        """Only top-level constraints make prereleases reasonable."""
        cache = make_cache({
            "foo": ["1.0.0-rc1"],
            "bar": [("1.0.0", ["foo"], ["foo@=1.0.0-rc1"])],
            "baz": [("1.0.0", ["foo"], ["foo"])],
        })
        with pytest.raises(ResolutionError):
            Resolver(cache).resolve(["baz", "bar"])


class TestSearch:
    """Search loop behaviour."""

    def test_no_dependencies(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0"]})
        assert Resolver(cache).resolve([]) == {}

    def test_transitive_closure(self, make_cache) -> None:
        cache = make_cache({
            "a": [("1.0.0", ["b"], [])],
            "b": [("1.0.0", ["c"], [])],
            "c": ["1.0.0"],
            "unused": ["1.0.0"],
        })
        assert Resolver(cache).resolve(["a"]) == {"a": "1.0.0", "b": "1.0.0", "c": "1.0.0"}

    def test_backtracks_out_of_dead_end(self, backtracking_cache: DependencyCache) -> None:
        result = Resolver(backtracking_cache).resolve(["x", "z"])
        assert result == {"x": "1.1.0", "z": "1.0.0", "y": "2.0.0"}

    def test_nudge_called_once_per_iteration(self, backtracking_cache: DependencyCache) -> None:
        calls: list[int] = []
        Resolver(backtracking_cache).resolve(
            ["x", "z"], options=ResolveOptions(nudge=lambda: calls.append(1))
        )
        assert len(calls) == 5

    def test_resolver_level_nudge(self, backtracking_cache: DependencyCache) -> None:
        calls: list[int] = []
        Resolver(backtracking_cache, nudge=lambda: calls.append(1)).resolve(["x", "z"])
        assert calls

    def test_raising_from_nudge_aborts(self, backtracking_cache: DependencyCache) -> None:
        class Cancelled(Exception):
            pass

        def nudge() -> None:
            raise Cancelled()

        with pytest.raises(Cancelled):
            Resolver(backtracking_cache).resolve(["x", "z"], options=ResolveOptions(nudge=nudge))

    def test_deterministic(self, backtracking_cache: DependencyCache) -> None:
        resolver = Resolver(backtracking_cache)
        results = [resolver.resolve(["x", "z"]) for _ in range(3)]
        assert results[0] == results[1] == results[2]

    def test_unknown_root_dependency(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0"]})
        with pytest.raises(ResolutionError, match="unknown package: nope"):
            Resolver(cache).resolve(["foo", "nope"])

    def test_resolve_units_returns_interned_objects(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0"]})
        units = Resolver(cache).resolve_units(["foo"])
        assert units["foo"] is cache.get_unit_version("foo", "1.0.0")

    def test_cache_reusable_across_calls(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0", "2.0.0"]})
        resolver = Resolver(cache)
        assert resolver.resolve(["foo"], _constraints(cache, "foo@=2.0.0")) == {"foo": "2.0.0"}
        assert resolver.resolve(["foo"], _constraints(cache, "foo@=1.0.0")) == {"foo": "1.0.0"}

    def test_solution_satisfies_every_constraint(self, backtracking_cache: DependencyCache) -> None:
        from versolve.core.solver import ResolveContext

        units = Resolver(backtracking_cache).resolve_units(["x", "z"])
        context = ResolveContext()
        for uv in units.values():
            for constraint in uv.constraints:
                assert constraint.is_satisfied(units[constraint.name], context)


class TestErrors:
    """Fault classification."""

    def test_resolution_error_is_user_facing(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0"]})
        with pytest.raises(VersolveError) as excinfo:
            Resolver(cache).resolve(["foo"], _constraints(cache, "foo@=2.0.0"))
        assert isinstance(excinfo.value, ResolutionError)
        assert excinfo.value.user_facing

    def test_invariant_errors_are_not_user_facing(self) -> None:
        assert not SolverInvariantError("x").user_facing

    def test_first_conflict_is_reported(self, make_cache) -> None:
        """Two dead ends are hit; the first recorded explanation wins."""
        cache = make_cache({
            "a": [
                ("1.0.0", ["c"], ["c@=9.0.0"]),
                ("2.0.0", ["d"], ["d@=9.0.0"]),
            ],
            "c": ["1.0.0"],
            "d": ["1.0.0"],
        })
        with pytest.raises(ResolutionError) as excinfo:
            Resolver(cache).resolve(["a"])
        assert excinfo.value.package == "c"


@pytest.fixture
def choice_log(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Record the package name of every add_choice call, in order."""
    log: list[str] = []
    original = ResolverState.add_choice

    def add_choice(self, unit_version, pathway=TOP_LEVEL):
        log.append(unit_version.name)
        return original(self, unit_version, pathway)

    monkeypatch.setattr(ResolverState, "add_choice", add_choice)
    return log


def _sibling_catalog(with_dead_end: bool) -> dict:
    """r@2.0.0 requires q then p; p@1.0.0 can never be chosen."""
    catalog: dict = {
        "r": [("2.0.0", ["q", "p"], [])],
        "p": [("1.0.0", ["s"], ["s@=9.0.0"]), "2.0.0"],
        "q": ["1.0.0"],
        "s": ["1.0.0"],
    }
    if with_dead_end:
        # Tried first: pins p to its unusable version.
        catalog["r"].insert(0, ("1.0.0", ["p"], ["p@=1.0.0"]))
    return catalog


class TestPriority:
    """ResolutionPriority table and its effect on branching order."""

    def test_siblings_branch_in_requirement_order(self, make_cache, choice_log) -> None:
        cache = make_cache(_sibling_catalog(with_dead_end=False))
        result = Resolver(cache).resolve(["r"])
        assert result == {"r": "2.0.0", "q": "1.0.0", "p": "2.0.0"}
        assert choice_log == ["r", "q", "p", "p"]

    def test_dead_end_package_is_decided_first(self, make_cache, choice_log) -> None:
        """p dead-ends under r@1.0.0, so under r@2.0.0 it jumps ahead of q."""
        cache = make_cache(_sibling_catalog(with_dead_end=True))
        calls: list[int] = []
        result = Resolver(cache).resolve(
            ["r"], options=ResolveOptions(nudge=lambda: calls.append(1))
        )
        assert result == {"r": "2.0.0", "q": "1.0.0", "p": "2.0.0"}
        assert choice_log == ["r", "r", "p", "p", "p", "q"]
        assert len(calls) == 5

    def test_default_and_bump(self) -> None:
        table = ResolutionPriority()
        assert table.get("foo") == 0
        table.bump("foo")
        table.bump("foo")
        assert table.get("foo") == 2
        table.elevate("bar", 100)
        table.bump("bar")
        assert table.get("bar") == 101


class TestCostFunctions:
    """Pluggable version preference."""

    def test_default_prefers_nothing_in_particular(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0", "1.1.0", "2.0.0"]})
        assert Resolver(cache).resolve(["foo"]) == {"foo": "1.0.0"}

    def test_prefer_latest(self, make_cache) -> None:
        cache = make_cache({"foo": ["1.0.0", "1.1.0", "2.0.0"]})
        options = ResolveOptions(
            cost_function=prefer_latest(cache),
            estimate_cost_function=pending_lower_bound(cache),
        )
        assert Resolver(cache).resolve(["foo"], _constraints(cache, "foo@1.0.0"), options) == {
            "foo": "1.1.0"
        }

    def test_prefer_latest_trades_off_across_packages(self, make_cache) -> None:
        """The newest a forces an old b; the cheaper total wins."""
        cache = make_cache({
            "a": [
                ("1.0.0", ["b"], []),
                ("2.0.0", ["b"], ["b@=1.0.0"]),
            ],
            "b": ["1.0.0", "1.1.0", "1.2.0"],
        })
        options = ResolveOptions(
            cost_function=prefer_latest(cache),
            estimate_cost_function=pending_lower_bound(cache),
        )
        assert Resolver(cache).resolve(["a"], options=options) == {"a": "1.0.0", "b": "1.2.0"}
