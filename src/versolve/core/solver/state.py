"""Immutable partial assignments explored by the resolver.

A ``ResolverState`` is one node of the search graph. It records the versions
already chosen, the packages known to be required but not yet chosen together
with their surviving candidates, every constraint seen so far, and (for a
dead branch) the reason the branch failed.

Transitions never mutate a state. Every map is a ``pyrsistent`` persistent
map, so a new state shares all unchanged entries with its parent and a
transition only pays for the package entries it touches. A failed state is
terminal: every transition on it returns it unchanged.

Filtering is monotonic. Once a candidate is removed from a pending set it
never becomes valid again on the same branch, which is why the resolve
context (prerelease policy) is fixed before the search starts.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from pyrsistent import PMap, pmap

from versolve.core.solver.cache import DependencyCache, UnitVersion
from versolve.core.solver.constraints import Constraint, ResolveContext
from versolve.exceptions import SolverInvariantError


@dataclass(frozen=True)
class Pathway:
    """The chain of chosen unit versions that led to a requirement.

    ``units[0]`` is the closest requirer; the chain ends at the top level.
    """

    units: tuple[UnitVersion, ...] = ()

    def extend(self, unit_version: UnitVersion) -> Pathway:
        return Pathway((unit_version,) + self.units)

    def __len__(self) -> int:
        return len(self.units)

    def __iter__(self) -> Iterator[UnitVersion]:
        return iter(self.units)

    def __str__(self) -> str:
        return " <- ".join([str(uv) for uv in self.units] + ["top level"])


TOP_LEVEL = Pathway()


class ResolverState:
    """A snapshot of a partial version assignment.

    Args:
        cache: Catalog supplying candidate versions.
        context: Context of the resolve call this state belongs to.
    """

    __slots__ = (
        "_cache",
        "_context",
        "_choices",
        "_pending",
        "_constraints",
        "_constraint_pathways",
        "_unit_pathways",
        "_required_order",
        "error",
        "error_unit",
    )

    def __init__(self, cache: DependencyCache, context: ResolveContext) -> None:
        self._cache = cache
        self._context = context
        # name -> chosen unit version
        self._choices: PMap[str, UnitVersion] = pmap()
        # name -> surviving candidates, lowest version first
        self._pending: PMap[str, tuple[UnitVersion, ...]] = pmap()
        # name -> every constraint seen on that package
        self._constraints: PMap[str, tuple[Constraint, ...]] = pmap()
        # constraint -> pathway that first introduced it
        self._constraint_pathways: PMap[Constraint, Pathway] = pmap()
        # name -> pathway that first required it
        self._unit_pathways: PMap[str, Pathway] = pmap()
        # name -> position among required packages; entries are never removed
        self._required_order: PMap[str, int] = pmap()
        self.error: str | None = None
        self.error_unit: str | None = None

    # -- read-only views -----------------------------------------------------

    @property
    def choices(self) -> Mapping[str, UnitVersion]:
        return self._choices

    @property
    def pending(self) -> Mapping[str, tuple[UnitVersion, ...]]:
        """Pending candidates by name. Use ``each_dependency`` for a stable order."""
        return self._pending

    @property
    def num_choices(self) -> int:
        return len(self._choices)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def success(self) -> bool:
        """True when nothing is pending and the branch has not failed."""
        return self.error is None and not self._pending

    def each_dependency(self) -> Iterator[tuple[str, tuple[UnitVersion, ...]]]:
        """Iterate pending ``(name, candidates)`` pairs in the order they were required."""
        order = self._required_order
        return iter(sorted(self._pending.items(), key=lambda item: order[item[0]]))

    def constraints_for(self, name: str) -> tuple[Constraint, ...]:
        return self._constraints.get(name, ())

    def is_satisfied(self, unit_version: UnitVersion) -> bool:
        """Check *unit_version* against every constraint known for its package."""
        return all(
            c.is_satisfied(unit_version, self._context)
            for c in self.constraints_for(unit_version.name)
        )


    def some_pathway_for_unit_name(self, name: str) -> Pathway:
        """Return one chain of requirers leading from the top level to *name*."""
        return self._unit_pathways.get(name, TOP_LEVEL)

    # -- transitions ---------------------------------------------------------

    def add_constraint(
        self, constraint: Constraint, pathway: Pathway = TOP_LEVEL
    ) -> ResolverState:
        """Apply *constraint* to this state.

        A chosen package must still satisfy it; a pending package has its
        candidates filtered by it; otherwise it is only recorded, to be
        applied when the package becomes a dependency.
        """
        if self.error is not None:
            return self

        name = constraint.name
        existing = self._constraints.get(name, ())
        if any(c is constraint for c in existing):
            return self

        state = self._clone()
        state._constraints = self._constraints.set(name, existing + (constraint,))
        state._constraint_pathways = self._constraint_pathways.set(constraint, pathway)

        chosen = state._choices.get(name)
        if chosen is not None:
            if not constraint.is_satisfied(chosen, state._context):
                return state._fail(
                    name,
                    f"conflict: constraint {constraint} is not satisfied by "
                    f"{chosen.version}.\n"
                    f"Constraints on {name} come from:\n"
                    f"{state._shown_pathways(name)}",
                )
            return state

        alternatives = state._pending.get(name)
        if alternatives is not None:
            survivors = tuple(
                uv for uv in alternatives
                if constraint.is_satisfied(uv, state._context)
            )
            if not survivors:
                return state._fail(
                    name,
                    f"conflict: constraints on {name} cannot all be satisfied.\n"
                    f"Constraints come from:\n"
                    f"{state._shown_pathways(name)}",
                )
            if len(survivors) != len(alternatives):
                state._pending = state._pending.set(name, survivors)
        return state

    def add_dependency(self, name: str, pathway: Pathway = TOP_LEVEL) -> ResolverState:
        """Require package *name*, seeding its candidates from the cache.

        A no-op when the package is already chosen or pending.
        """
        if self.error is not None:
            return self
        if name in self._choices or name in self._pending:
            return self

        state = self._clone()
        state._unit_pathways = self._unit_pathways.set(name, pathway)
        state._required_order = self._required_order.set(name, len(self._required_order))

        versions = self._cache.versions_for(name)
        if not versions:
            return state._fail(
                name, f"unknown package: {name}\nRequired by: {pathway}"
            )

        candidates = tuple(uv for uv in versions if state.is_satisfied(uv))
        if not candidates:
            return state._fail(
                name,
                f"conflict: constraints on {name} cannot be satisfied.\n"
                f"Constraints come from:\n"
                f"{state._shown_pathways(name)}",
            )

        state._pending = state._pending.set(name, candidates)
        return state

    def add_choice(
        self, unit_version: UnitVersion, pathway: Pathway = TOP_LEVEL
    ) -> ResolverState:
        """Commit *unit_version* and everything it implies.

        The chosen version's constraints are applied first, then its
        dependencies are required. The first failing sub-transition ends the
        fold and its failed state is returned.

        Raises:
            SolverInvariantError: If the package was already chosen or the
                version violates a constraint already known for it.
        """
        if self.error is not None:
            return self

        name = unit_version.name
        if name in self._choices:
            raise SolverInvariantError(f"already chose {name}")
        if not self.is_satisfied(unit_version):
            raise SolverInvariantError(
                f"tried to choose unsatisfied version {unit_version}"
            )

        state = self._clone()
        state._choices = self._choices.set(name, unit_version)
        state._pending = state._pending.discard(name)

        pathway = pathway.extend(unit_version)
        for constraint in unit_version.constraints:
            state = state.add_constraint(constraint, pathway)
            if state.error is not None:
                return state
        for dep in unit_version.dependencies:
            state = state.add_dependency(dep, pathway)
            if state.error is not None:
                return state
        return state

    # -- internals -----------------------------------------------------------

    def _clone(self) -> ResolverState:
        clone = object.__new__(ResolverState)
        for slot in ResolverState.__slots__:
            setattr(clone, slot, getattr(self, slot))
        return clone

    def _fail(self, name: str, message: str) -> ResolverState:
        # Only ever called on a fresh clone owned by the current transition.
        self.error = message
        self.error_unit = name
        return self

    def _shown_pathways(self, name: str) -> str:
        return "\n".join(
            f"  {constraint} <- {self._constraint_pathways.get(constraint, TOP_LEVEL)}"
            for constraint in self.constraints_for(name)
        )

    def __repr__(self) -> str:
        if self.error is not None:
            return f"<ResolverState failed on {self.error_unit}>"
        return (
            f"<ResolverState choices={len(self._choices)} "
            f"pending={[name for name, _ in self.each_dependency()]}>"
        )
