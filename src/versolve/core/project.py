"""Project-level root dependencies and the resolve entry point used by the CLI.

A project file lists the packages a project uses, one constraint per line::

    # direct dependencies
    foo@1.2.0
    bar@=2.0.0
    baz

Every line both requires the package and constrains it. A missing file means
the project uses no packages.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from versolve.core.catalog import parse_constraints
from versolve.core.solver import (
    DependencyCache,
    ResolveOptions,
    Resolver,
    pending_lower_bound,
    prefer_latest,
    split_constraint,
)
from versolve.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass
class ProjectFile:
    """Parsed project file: ordered package names and their raw constraints."""

    path: Path | None = None
    constraints: dict[str, str] = field(default_factory=dict)

    @property
    def dependencies(self) -> list[str]:
        return list(self.constraints)

    @property
    def raw_constraints(self) -> list[str]:
        return list(self.constraints.values())


def parse_project_lines(lines: Iterable[str], source: str = "<project>") -> ProjectFile:
    """Parse project file lines.

    Raises:
        ParseError: Listing malformed lines and duplicate package names.
    """
    project = ProjectFile()
    problems: list[str] = []
    for lineno, line in enumerate(lines, start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        try:
            name, _ = split_constraint(line)
        except ParseError as exc:
            problems.append(f"{source}:{lineno}: {exc}")
            continue
        if name in project.constraints:
            problems.append(f"{source}:{lineno}: package name appears twice: {name}")
            continue
        project.constraints[name] = line
    if problems:
        raise ParseError("\n".join(problems), messages=problems)
    return project


def load_project_file(path: Path) -> ProjectFile:
    """Read a project file; a missing file yields an empty project."""
    if not path.exists():
        logger.debug("No project file at %s", path)
        return ProjectFile(path=path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Cannot read project file {path}: {exc}") from exc
    project = parse_project_lines(text.splitlines(), str(path))
    project.path = path
    return project


def resolve_project(
    cache: DependencyCache,
    dependencies: Iterable[str],
    raw_constraints: Iterable[str],
    *,
    pins: Iterable[str] = (),
    use_rcs: bool = False,
    prefer_newest: bool = False,
    nudge: Callable[[], None] | None = None,
) -> dict[str, str]:
    """Parse constraints eagerly and run the resolver.

    Args:
        cache: Populated dependency cache.
        dependencies: Root package names.
        raw_constraints: Top-level ``name@spec`` strings.
        pins: ``name@version`` strings. Each becomes an exact constraint
            without making the package a dependency.
        use_rcs: Accept prereleases everywhere.
        prefer_newest: Rank solutions by how new their versions are.
        nudge: Per-iteration callback.

    Returns:
        Mapping of package name to chosen version.

    Raises:
        ParseError: For malformed constraints or pins, before any search.
        ResolutionError: If the constraints cannot all be satisfied.
    """
    raw = list(raw_constraints)
    for pin in pins:
        name, _, version = pin.partition("@")
        raw.append(f"{name}@={version.lstrip('=')}")
    constraints = parse_constraints(cache, raw)

    options = ResolveOptions(use_rcs=use_rcs, nudge=nudge)
    if prefer_newest:
        options.cost_function = prefer_latest(cache)
        options.estimate_cost_function = pending_lower_bound(cache)
    return Resolver(cache).resolve(list(dependencies), constraints, options)
