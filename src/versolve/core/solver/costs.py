"""Pluggable cost policies for the resolver.

The resolver itself has no version preference: its default cost is zero for
every state. Callers that want one plug these functions into
``ResolveOptions``::

    options = ResolveOptions(
        cost_function=prefer_latest(cache),
        estimate_cost_function=pending_lower_bound(cache),
    )

``prefer_latest`` never decreases along a search path and
``pending_lower_bound`` never overestimates, so the first solution popped is
a cheapest one.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from versolve.core.solver.cache import DependencyCache, UnitVersion
    from versolve.core.solver.state import ResolverState


def zero_cost(state: ResolverState) -> int:
    return 0


class _NewerVersionCounter:
    """Counts how many known versions of a package are newer than a given one."""

    def __init__(self, cache: DependencyCache) -> None:
        self._cache = cache
        self._counts: dict[UnitVersion, int] = {}

    def __call__(self, unit_version: UnitVersion) -> int:
        count = self._counts.get(unit_version)
        if count is None:
            versions = self._cache.versions_for(unit_version.name)
            for index, uv in enumerate(versions):
                self._counts[uv] = len(versions) - index - 1
            count = self._counts[unit_version]
        return count


def prefer_latest(cache: DependencyCache) -> Callable[[ResolverState], int]:
    """Cost function: total number of newer versions passed over by the choices."""
    newer = _NewerVersionCounter(cache)

    def cost(state: ResolverState) -> int:
        return sum(newer(uv) for uv in state.choices.values())

    return cost


def pending_lower_bound(cache: DependencyCache) -> Callable[[ResolverState], int]:
    """Estimate: the cheapest surviving candidate of every pending package."""
    newer = _NewerVersionCounter(cache)

    def estimate(state: ResolverState) -> int:
        # Candidates are kept lowest first, so the last one is the cheapest.
        return sum(newer(versions[-1]) for _, versions in state.each_dependency())

    return estimate
