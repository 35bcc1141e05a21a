"""Package version constraint solver.

Selects one version per package such that every dependency and version
constraint reachable from a set of root dependencies is satisfied. The
solver is a best-first search over immutable partial assignments, backed by
an identity-interning catalog:

- **DependencyCache** -- canonical ``UnitVersion`` and ``Constraint`` objects
  and the ordered versions of each package.
- **ResolverState** -- one node of the search graph.
- **Resolver** -- the search loop.

All public names are re-exported here, so callers can write
``from versolve.core.solver import Resolver``.
"""

from versolve.core.solver.cache import DependencyCache, UnitVersion
from versolve.core.solver.constraints import (
    ANY_REASONABLE,
    COMPATIBLE_WITH,
    EXACTLY,
    Constraint,
    ConstraintClause,
    ResolveContext,
    is_valid_package_name,
    parse_constraint,
    split_constraint,
)
from versolve.core.solver.costs import pending_lower_bound, prefer_latest, zero_cost
from versolve.core.solver.queue import PriorityQueue
from versolve.core.solver.resolver import (
    ROOT_PRIORITY,
    ResolutionPriority,
    ResolveOptions,
    Resolver,
)
from versolve.core.solver.state import TOP_LEVEL, Pathway, ResolverState
from versolve.core.solver.versions import (
    compare_versions,
    is_prerelease,
    is_valid_version,
    less_than,
    major_version,
    parse_version,
    remove_build_id,
)

__all__ = [
    "ANY_REASONABLE",
    "COMPATIBLE_WITH",
    "EXACTLY",
    "ROOT_PRIORITY",
    "TOP_LEVEL",
    "Constraint",
    "ConstraintClause",
    "DependencyCache",
    "Pathway",
    "PriorityQueue",
    "ResolutionPriority",
    "ResolveContext",
    "ResolveOptions",
    "Resolver",
    "ResolverState",
    "UnitVersion",
    "compare_versions",
    "is_prerelease",
    "is_valid_package_name",
    "is_valid_version",
    "less_than",
    "major_version",
    "parse_constraint",
    "parse_version",
    "pending_lower_bound",
    "prefer_latest",
    "remove_build_id",
    "split_constraint",
    "zero_cost",
]
