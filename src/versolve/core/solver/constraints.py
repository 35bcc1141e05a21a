"""Version constraints and the per-call resolve context.

A constraint string has the form ``name@spec`` where spec is a ``||``
separated disjunction of clauses:

- ``=1.2.3`` -- *exactly*: pins one version.
- ``1.2.3`` -- *compatible-with*: at least 1.2.3, same major version.
- ``1.x`` / ``1.2.x`` -- shorthand for compatible-with ``1.0.0`` / ``1.2.0``.
- ``*`` or no spec at all -- *any-reasonable*: any release, and only those
  prereleases the resolve context allows.

Constraints are compared by identity. Build them through
``DependencyCache.get_constraint`` so that equal constraints are the same
object.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from versolve.core.solver.versions import (
    is_prerelease,
    is_valid_version,
    less_than,
    major_version,
    remove_build_id,
)
from versolve.exceptions import ParseError, SolverInvariantError

if TYPE_CHECKING:
    from versolve.core.solver.cache import UnitVersion

EXACTLY = "exactly"
COMPATIBLE_WITH = "compatible-with"
ANY_REASONABLE = "any-reasonable"

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.\-_:]*$")
_SHORTHAND_RE = re.compile(r"^(?P<major>0|[1-9]\d*)(?:\.(?P<minor>0|[1-9]\d*))?\.[xX*]$")


def is_valid_package_name(name: str) -> bool:
    return _NAME_RE.fullmatch(name) is not None


# ---------------------------------------------------------------------------
# ResolveContext
# ---------------------------------------------------------------------------


@dataclass
class ResolveContext:
    """General context of one resolve call, shared by every state in it.

    Attributes:
        top_level_prereleases: Package name -> set of prerelease versions that
            were explicitly named by top-level constraints.
        use_rcs_ok: Whether any prerelease is acceptable everywhere.
    """

    top_level_prereleases: dict[str, set[str]] = field(default_factory=dict)
    use_rcs_ok: bool = False

    def allow_prerelease(self, name: str, version: str) -> None:
        self.top_level_prereleases.setdefault(name, set()).add(version)

    def is_top_level_prerelease(self, name: str, version: str) -> bool:
        return version in self.top_level_prereleases.get(name, ())


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConstraintClause:
    """One alternative of a constraint: a type and (except for any-reasonable) a version."""

    type: str
    version: str | None = None

    def __str__(self) -> str:
        if self.type == EXACTLY:
            return f"={self.version}"
        if self.type == COMPATIBLE_WITH:
            return str(self.version)
        return "*"


def _parse_clause(raw: str, full: str) -> ConstraintClause:
    text = raw.strip()
    if text in ("", "*"):
        return ConstraintClause(ANY_REASONABLE)
    if text.startswith("="):
        version = text[1:].strip()
        if not is_valid_version(version):
            raise ParseError(f"Invalid version {version!r} in constraint {full!r}")
        return ConstraintClause(EXACTLY, remove_build_id(version))
    m = _SHORTHAND_RE.match(text)
    if m:
        return ConstraintClause(
            COMPATIBLE_WITH, f"{m.group('major')}.{m.group('minor') or 0}.0"
        )
    if not is_valid_version(text):
        raise ParseError(f"Invalid version {text!r} in constraint {full!r}")
    return ConstraintClause(COMPATIBLE_WITH, remove_build_id(text))


def parse_constraint_spec(spec: str, full: str | None = None) -> tuple[ConstraintClause, ...]:
    """Parse the part of a constraint string after ``@`` into its clauses.

    Raises:
        ParseError: If any clause is malformed.
    """
    full = spec if full is None else full
    if spec.strip() in ("", "*"):
        return (ConstraintClause(ANY_REASONABLE),)
    parts = spec.split("||")
    if any(not part.strip() for part in parts):
        raise ParseError(f"Empty alternative in constraint {full!r}")
    return tuple(_parse_clause(part, full) for part in parts)


def split_constraint(raw: str) -> tuple[str, str]:
    """Split ``name@spec`` into its package name and spec.

    A bare package name yields an empty spec.

    Raises:
        ParseError: If the package name is malformed.
    """
    name, _, spec = raw.strip().partition("@")
    name = name.strip()
    if not is_valid_package_name(name):
        raise ParseError(f"Invalid package name {name!r} in constraint {raw!r}")
    return name, spec.strip()


def parse_constraint(raw: str) -> tuple[str, tuple[ConstraintClause, ...]]:
    """Parse a full ``name@spec`` string into its name and clauses."""
    name, spec = split_constraint(raw)
    return name, parse_constraint_spec(spec, raw)


def canonical_spec(clauses: tuple[ConstraintClause, ...]) -> str:
    """Render clauses back into the canonical spec string used for interning."""
    if len(clauses) == 1 and clauses[0].type == ANY_REASONABLE:
        return ""
    return " || ".join(str(clause) for clause in clauses)


# ---------------------------------------------------------------------------
# Constraint
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Constraint:
    """A parsed requirement on the versions of one package.

    Satisfied when any one of its clauses is satisfied. Equality and hashing
    are by identity.

    Attributes:
        name: The constrained package.
        constraint_string: Canonical spec (e.g. ``=1.2.3 || 2.0.0``).
        clauses: The disjunctive clauses.
    """

    name: str
    constraint_string: str
    clauses: tuple[ConstraintClause, ...]

    @property
    def version(self) -> str | None:
        """The clause version when there is exactly one versioned clause."""
        if len(self.clauses) == 1:
            return self.clauses[0].version
        return None

    @property
    def prerelease_versions(self) -> list[str]:
        return [
            c.version for c in self.clauses
            if c.version is not None and is_prerelease(c.version)
        ]

    def is_satisfied(self, candidate: UnitVersion, context: ResolveContext) -> bool:
        """Return True if *candidate* satisfies any clause under *context*.

        Raises:
            SolverInvariantError: If *candidate* belongs to another package.
        """
        if candidate.name != self.name:
            raise SolverInvariantError(
                f"asking constraint on {self.name} about {candidate.name}"
            )
        return any(
            self._clause_satisfied(clause, candidate, context)
            for clause in self.clauses
        )

    def _clause_satisfied(
        self,
        clause: ConstraintClause,
        candidate: UnitVersion,
        context: ResolveContext,
    ) -> bool:
        version = candidate.version
        if clause.type == ANY_REASONABLE:
            return (
                not is_prerelease(version)
                or context.use_rcs_ok
                or context.is_top_level_prerelease(self.name, version)
            )

        if clause.type == EXACTLY:
            return clause.version == version

        if clause.type != COMPATIBLE_WITH:  # pragma: no cover
            raise SolverInvariantError(f"Unknown constraint type: {clause.type!r}")

        # A release constraint only admits a prerelease that was named at
        # the top level (or when prereleases are globally acceptable).
        if (
            not is_prerelease(clause.version)
            and is_prerelease(version)
            and not context.use_rcs_ok
        ):
            if clause.version == version:
                return True
            if not context.is_top_level_prerelease(self.name, version):
                return False

        if less_than(version, clause.version):
            return False
        return candidate.major_version == major_version(clause.version)

    def __str__(self) -> str:
        if not self.constraint_string:
            return self.name
        return f"{self.name}@{self.constraint_string}"

    def __repr__(self) -> str:
        return f"Constraint({str(self)!r})"
