"""Catalog population: turn package records into a ``DependencyCache``.

A catalog document (YAML, or JSON since JSON is valid YAML) lists every
known version of every package::

    packages:
      foo:
        - version: "1.0.0"
          dependencies: [bar]
          constraints: ["bar@=1.0.0"]
        - version: "1.1.0"
      bar:
        - version: "1.0.0"

Versions may appear in any order in the document; they are registered in
increasing version order as the cache requires.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from versolve.core.solver import (
    Constraint,
    DependencyCache,
    UnitVersion,
    is_valid_package_name,
    is_valid_version,
    less_than,
    parse_constraint,
    parse_version,
    remove_build_id,
)
from versolve.exceptions import ParseError

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    """One package version as supplied by the surrounding build tool.

    Attributes:
        name: Package name.
        version: Semantic version string.
        dependencies: Names of the packages this version requires.
        constraints: Raw ``name@spec`` constraints it imposes.
    """

    name: str
    version: str
    dependencies: list[str] = field(default_factory=list)
    constraints: list[str] = field(default_factory=list)


def _sort_key(entry: CatalogEntry) -> tuple[str, Any]:
    return entry.name, parse_version(entry.version)


def _entry_problems(entry: CatalogEntry) -> list[str]:
    """Check one entry in isolation: its name, version and constraint strings."""
    problems: list[str] = []
    if not is_valid_package_name(entry.name):
        problems.append(f"invalid package name {entry.name!r}")
    if not is_valid_version(entry.version):
        problems.append(f"{entry.name}: Invalid semantic version: {entry.version!r}")
        return problems
    where = f"{entry.name}@{remove_build_id(entry.version)}"
    for dep in entry.dependencies:
        if not is_valid_package_name(dep):
            problems.append(f"{where}: invalid dependency name {dep!r}")
    for raw in entry.constraints:
        try:
            parse_constraint(raw)
        except ParseError as exc:
            problems.append(f"{where}: {exc}")
    return problems


def build_cache(
    entries: Iterable[CatalogEntry],
    cache: DependencyCache | None = None,
) -> DependencyCache:
    """Register every entry in a dependency cache.

    Every problem (invalid names, versions or constraints, duplicate
    versions, versions not newer than those already in *cache*) is collected
    before anything is reported. Nothing is registered unless every entry is
    valid.

    Args:
        entries: Catalog entries in any order.
        cache: Existing cache to extend. A new one is created if omitted.

    Returns:
        The populated cache.

    Raises:
        ParseError: Listing every problem found, if any.
    """
    cache = cache if cache is not None else DependencyCache()
    problems: list[str] = []

    valid: list[CatalogEntry] = []
    for entry in entries:
        entry_problems = _entry_problems(entry)
        if entry_problems:
            problems.extend(entry_problems)
        else:
            valid.append(entry)

    accepted: list[CatalogEntry] = []
    seen: set[tuple[str, str]] = set()
    for entry in sorted(valid, key=_sort_key):
        version = remove_build_id(entry.version)
        known = cache.get_unit_version(entry.name, version) is not None
        if known or (entry.name, version) in seen:
            problems.append(f"duplicate version {entry.name}@{version}")
            continue
        existing = cache.versions_for(entry.name)
        if existing and not less_than(existing[-1].version, version):
            problems.append(
                f"{entry.name}@{version} is older than {existing[-1]}, "
                f"already in the catalog"
            )
            continue
        seen.add((entry.name, version))
        accepted.append(entry)

    if problems:
        raise ParseError(
            f"{len(problems)} problem(s) in catalog:\n" + "\n".join(problems),
            messages=problems,
        )

    for entry in accepted:
        unit_version = UnitVersion(entry.name, entry.version)
        for raw in entry.constraints:
            unit_version.add_constraint(cache.get_constraint_from_string(raw))
        constrained = {c.name for c in unit_version.constraints}
        for dep in entry.dependencies:
            unit_version.add_dependency(dep)
            # An unconstrained dependency still only takes reasonable versions.
            if dep not in constrained:
                unit_version.add_constraint(cache.get_constraint(dep, ""))
        cache.add_unit_version(unit_version)

    logger.debug("Catalog holds %d unit versions", len(cache))
    return cache


def parse_constraints(cache: DependencyCache, raw_constraints: Iterable[str]) -> list[Constraint]:
    """Parse top-level constraint strings eagerly, reporting every malformed one.

    Raises:
        ParseError: Listing every malformed constraint, if any.
    """
    constraints: list[Constraint] = []
    problems: list[str] = []
    for raw in raw_constraints:
        try:
            constraints.append(cache.get_constraint_from_string(raw))
        except ParseError as exc:
            problems.append(str(exc))
    if problems:
        raise ParseError("\n".join(problems), messages=problems)
    return constraints


def _as_str_list(value: Any, what: str, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"{where}: {what} must be a list")
    return [str(item) for item in value]


def entries_from_document(data: Any, source: str = "<catalog>") -> list[CatalogEntry]:
    """Convert a decoded catalog document into catalog entries.

    Raises:
        ParseError: If the document does not have the expected shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("packages"), dict):
        raise ParseError(f"{source}: expected a mapping with a 'packages' mapping")

    entries: list[CatalogEntry] = []
    for name, versions in data["packages"].items():
        if not isinstance(versions, list):
            raise ParseError(f"{source}: versions of {name!r} must be a list")
        for record in versions:
            if isinstance(record, (str, int, float)):
                record = {"version": record}
            if not isinstance(record, dict) or "version" not in record:
                raise ParseError(f"{source}: every version of {name!r} needs a 'version'")
            where = f"{source}: {name}@{record['version']}"
            entries.append(
                CatalogEntry(
                    name=str(name),
                    version=str(record["version"]),
                    dependencies=_as_str_list(record.get("dependencies"), "dependencies", where),
                    constraints=_as_str_list(record.get("constraints"), "constraints", where),
                )
            )
    return entries


def load_catalog(path: Path) -> list[CatalogEntry]:
    """Read a YAML or JSON catalog file.

    Raises:
        ParseError: If the file cannot be read or decoded.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Cannot read catalog {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid catalog {path}: {exc}") from exc
    return entries_from_document(data, str(path))
