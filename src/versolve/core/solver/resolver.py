"""Best-first search for a consistent set of package versions.

The resolver explores partial assignments (``ResolverState``) in order of a
composite cost. Each step pops the cheapest open state, branches on the
pending package with the highest priority, and pushes one neighbor per
surviving candidate version of it. A state with nothing pending is a
solution.

Priorities are conflict-driven. Root dependencies start high; whenever every
candidate of a package leads to a dead end, that package's priority is
raised so that later branches decide it earlier and fail sooner.

With the default (constant zero) cost functions the ordering degenerates to
"most choices made first": there is no built-in preference for newer
versions. Version preference is a pluggable policy, see
``versolve.core.solver.costs``.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from versolve.core.solver.cache import DependencyCache, UnitVersion
from versolve.core.solver.constraints import Constraint, ResolveContext
from versolve.core.solver.costs import zero_cost
from versolve.core.solver.queue import PriorityQueue
from versolve.core.solver.state import TOP_LEVEL, ResolverState
from versolve.exceptions import (
    ResolutionError,
    SearchExhaustedError,
    SolverInvariantError,
)

logger = logging.getLogger(__name__)

ROOT_PRIORITY = 100

CostFunction = Callable[[ResolverState], Any]


# ---------------------------------------------------------------------------
# Options and per-call bookkeeping
# ---------------------------------------------------------------------------


@dataclass
class ResolveOptions:
    """Tuning knobs for one ``Resolver.resolve`` call.

    Attributes:
        cost_function: Cost of the path from the start state to a state.
        estimate_cost_function: Estimated cost from a state to the cheapest
            solution reachable from it.
        combine_cost_function: Combines the two costs into the primary key.
        use_rcs: Accept prerelease versions everywhere.
        nudge: Called once per search iteration. Raising from it aborts the
            call.
    """

    cost_function: CostFunction = zero_cost
    estimate_cost_function: CostFunction = zero_cost
    combine_cost_function: Callable[[Any, Any], Any] = operator.add
    use_rcs: bool = False
    nudge: Callable[[], None] | None = None


@dataclass
class ResolutionPriority:
    """Call-scoped package priority table used to pick the next branch.

    Owned by a single resolve call; never shared between calls.
    """

    _table: dict[str, int] = field(default_factory=dict)

    def get(self, name: str) -> int:
        return self._table.get(name, 0)

    def elevate(self, name: str, priority: int) -> None:
        self._table[name] = priority

    def bump(self, name: str) -> None:
        self._table[name] = self.get(name) + 1


@dataclass
class Neighbors:
    """Outcome of branching on one pending package."""

    success: bool
    neighbors: list[ResolverState] = field(default_factory=list)
    failure_msg: str | None = None
    failure_unit: str | None = None
    conflicting_unit: str | None = None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class Resolver:
    """Resolve root dependencies against the catalog held by *cache*.

    Args:
        cache: Populated dependency cache. Read-only during resolution.
        nudge: Default per-iteration callback, used when the options of a
            call do not provide one.
    """

    def __init__(
        self,
        cache: DependencyCache,
        nudge: Callable[[], None] | None = None,
    ) -> None:
        self._cache = cache
        self._nudge = nudge

    def resolve(
        self,
        dependencies: Iterable[str],
        constraints: Iterable[Constraint] | None = None,
        options: ResolveOptions | None = None,
    ) -> dict[str, str]:
        """Find one version for every package transitively required by *dependencies*.

        Args:
            dependencies: Root package names, in order.
            constraints: Top-level constraints, obtained from the cache.
            options: Cost functions, prerelease policy and nudge callback.

        Returns:
            Mapping of package name to chosen version string.

        Raises:
            ResolutionError: If no assignment satisfies every constraint.
            SolverInvariantError: On internal inconsistencies.
        """
        choices = self.resolve_units(dependencies, constraints, options)
        return {name: uv.version for name, uv in choices.items()}

    def resolve_units(
        self,
        dependencies: Iterable[str],
        constraints: Iterable[Constraint] | None = None,
        options: ResolveOptions | None = None,
    ) -> dict[str, UnitVersion]:
        """Like ``resolve`` but return the chosen ``UnitVersion`` objects."""
        options = options or ResolveOptions()
        constraints = list(constraints or ())
        dependencies = list(dependencies)
        nudge = options.nudge or self._nudge

        context = ResolveContext(use_rcs_ok=options.use_rcs)
        # Only prereleases named at the top level count as reasonable. This
        # is decided before any constraint is applied so that filtering
        # stays monotonic for the rest of the call.
        for constraint in constraints:
            for version in constraint.prerelease_versions:
                context.allow_prerelease(constraint.name, version)

        priority = ResolutionPriority()
        start = ResolverState(self._cache, context)
        for constraint in constraints:
            start = start.add_constraint(constraint, TOP_LEVEL)
        for name in dependencies:
            start = start.add_dependency(name, TOP_LEVEL)
            priority.elevate(name, ROOT_PRIORITY)

        if start.error is not None:
            raise ResolutionError(start.error, package=start.error_unit)
        if start.success:
            return dict(start.choices)

        def overall_cost(state: ResolverState) -> tuple[Any, int]:
            return (
                options.combine_cost_function(
                    options.cost_function(state),
                    options.estimate_cost_function(state),
                ),
                -state.num_choices,
            )

        logger.debug(
            "Resolving %d dependencies with %d top-level constraints",
            len(dependencies),
            len(constraints),
        )

        queue: PriorityQueue[ResolverState] = PriorityQueue()
        queue.push(start, overall_cost(start))

        some_error: str | None = None
        some_error_unit: str | None = None
        iterations = 0
        while queue:
            if nudge is not None:
                nudge()
            iterations += 1

            current = queue.pop()
            if current.success:
                logger.debug(
                    "Resolved %d packages after %d iterations",
                    current.num_choices,
                    iterations,
                )
                return dict(current.choices)

            result = self._state_neighbors(current, priority)
            if not result.success:
                if some_error is None:
                    some_error = result.failure_msg
                    some_error_unit = result.failure_unit
                    logger.debug("Dead end on %s", result.conflicting_unit)
                priority.bump(result.conflicting_unit)
                continue

            # Every neighbor is queued rather than returning the first
            # success, so cost functions can rank competing solutions.
            for neighbor in result.neighbors:
                queue.push(neighbor, overall_cost(neighbor))

        if some_error is not None:
            raise ResolutionError(some_error, package=some_error_unit)
        raise SearchExhaustedError("ran out of states without recording an error")

    def _state_neighbors(
        self, state: ResolverState, priority: ResolutionPriority
    ) -> Neighbors:
        candidate_name: str | None = None
        candidate_versions: Sequence[UnitVersion] = ()
        highest = -1
        for name, versions in state.each_dependency():
            rank = priority.get(name)
            if rank > highest:
                highest = rank
                candidate_name = name
                candidate_versions = versions

        if candidate_name is None or not candidate_versions:
            raise SolverInvariantError("empty candidate set; should have failed earlier")

        pathway = state.some_pathway_for_unit_name(candidate_name)

        neighbors: list[ResolverState] = []
        first_failure: ResolverState | None = None
        for unit_version in candidate_versions:
            neighbor = state.add_choice(unit_version, pathway)
            if neighbor.error is None:
                neighbors.append(neighbor)
            elif first_failure is None:
                first_failure = neighbor

        if neighbors:
            return Neighbors(success=True, neighbors=neighbors)
        assert first_failure is not None
        return Neighbors(
            success=False,
            failure_msg=first_failure.error,
            failure_unit=first_failure.error_unit,
            conflicting_unit=candidate_name,
        )
