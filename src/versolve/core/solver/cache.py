"""Interning registry for unit versions and constraints.

The resolver relies on identity: two equal unit versions, or two equal
constraints, must be the same object. ``DependencyCache`` guarantees this by
handing out canonical instances keyed on their string form.

Requirements on callers:

- every unit version used in a search was added with ``add_unit_version``;
- every constraint used in a search was obtained from ``get_constraint``;
- versions of one package are added in strictly increasing order.

The cache only grows. It is read-only during a resolve call and may be
reused across calls.
"""

from __future__ import annotations

from collections.abc import Iterable

from versolve.core.solver.constraints import (
    Constraint,
    canonical_spec,
    parse_constraint_spec,
    split_constraint,
)
from versolve.core.solver.versions import less_than, major_version, remove_build_id
from versolve.exceptions import SolverInvariantError


class UnitVersion:
    """One resolvable artifact: a package at a specific version.

    Dependencies and constraints are append-only and are populated while the
    catalog is built, before the cache takes part in a search. Equality and
    hashing are by identity.

    Attributes:
        name: Package name.
        version: Semantic version with any build id removed.
        major_version: Integer major version.
        dependencies: Ordered package names this version requires.
        constraints: Ordered constraints this version imposes.
    """

    __slots__ = ("name", "version", "major_version", "dependencies", "constraints")

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        # Different build ids represent the same code: "=1.3.1" must allow
        # "1.3.1+local".
        self.version = remove_build_id(version)
        self.major_version = major_version(self.version)
        self.dependencies: list[str] = []
        self.constraints: list[Constraint] = []

    def add_dependency(self, name: str) -> None:
        if name not in self.dependencies:
            self.dependencies.append(name)

    def add_constraint(self, constraint: Constraint) -> None:
        if not any(c is constraint for c in self.constraints):
            self.constraints.append(constraint)

    def __str__(self) -> str:
        return f"{self.name}@{self.version}"

    def __repr__(self) -> str:
        return f"UnitVersion({str(self)!r})"


class DependencyCache:
    """Canonical store of every unit version and constraint in a catalog.

    Thread safety: not thread-safe while being populated. Once populated it
    is only read, and concurrent resolve calls may share it.
    """

    def __init__(self) -> None:
        # name -> unit versions in increasing version order
        self._units_versions: dict[str, list[UnitVersion]] = {}
        # "name@version" -> unit version
        self._units_versions_map: dict[str, UnitVersion] = {}
        # (name, canonical spec) -> constraint
        self._constraints: dict[tuple[str, str], Constraint] = {}

    @property
    def unit_names(self) -> list[str]:
        """Every package name with at least one registered version."""
        return list(self._units_versions)

    def __contains__(self, name: object) -> bool:
        return name in self._units_versions

    def __len__(self) -> int:
        return len(self._units_versions_map)

    def add_unit_version(self, unit_version: UnitVersion) -> None:
        """Register a unit version.

        Raises:
            SolverInvariantError: If the same ``name@version`` was already
                added, or the version is not strictly greater than the last
                one added for this package.
        """
        key = str(unit_version)
        if key in self._units_versions_map:
            raise SolverInvariantError(f"duplicate unit version {key}")

        versions = self._units_versions.setdefault(unit_version.name, [])
        if versions:
            latest = versions[-1].version
            if not less_than(latest, unit_version.version):
                raise SolverInvariantError(
                    f"adding unit version out of order: {latest} vs "
                    f"{unit_version.version}"
                )

        versions.append(unit_version)
        self._units_versions_map[key] = unit_version

    def add_unit(
        self,
        name: str,
        version: str,
        dependencies: Iterable[str] = (),
        constraints: Iterable[str] = (),
    ) -> UnitVersion:
        """Create, populate and register a unit version in one step.

        Args:
            name: Package name.
            version: Version string.
            dependencies: Names of the packages this version requires.
            constraints: Raw ``name@spec`` constraint strings it imposes.

        Returns:
            The registered ``UnitVersion``.
        """
        unit_version = UnitVersion(name, version)
        for dep in dependencies:
            unit_version.add_dependency(dep)
        for raw in constraints:
            unit_version.add_constraint(self.get_constraint_from_string(raw))
        self.add_unit_version(unit_version)
        return unit_version

    def get_unit_version(self, name: str, version: str) -> UnitVersion | None:
        return self._units_versions_map.get(f"{name}@{remove_build_id(version)}")

    def versions_for(self, name: str) -> tuple[UnitVersion, ...]:
        """Return every known version of *name*, lowest first."""
        return tuple(self._units_versions.get(name, ()))

    def get_constraint(self, name: str, constraint_string: str) -> Constraint:
        """Return the interned constraint for ``name@constraint_string``.

        Spellings with the same meaning (``*`` and an empty spec, extra
        whitespace, build ids) share a single instance.

        Raises:
            ParseError: If the constraint string is malformed.
        """
        clauses = parse_constraint_spec(constraint_string, f"{name}@{constraint_string}")
        key = (name, canonical_spec(clauses))
        constraint = self._constraints.get(key)
        if constraint is None:
            constraint = Constraint(name, key[1], clauses)
            self._constraints[key] = constraint
        return constraint

    def get_constraint_from_string(self, raw: str) -> Constraint:
        """Return the interned constraint for a full ``name@spec`` string."""
        name, spec = split_constraint(raw)
        return self.get_constraint(name, spec)
