"""Shared fixtures for versolve tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from versolve.core.catalog import CatalogEntry, build_cache
from versolve.core.solver import DependencyCache, ResolveContext

# name -> list of versions; a version is either "1.0.0" or
# ("1.0.0", [dependencies], [constraints])
CatalogSpec = dict[str, list]


def entries_from_spec(spec: CatalogSpec) -> list[CatalogEntry]:
    entries = []
    for name, versions in spec.items():
        for item in versions:
            if isinstance(item, str):
                entries.append(CatalogEntry(name, item))
            else:
                version, deps, constraints = item
                entries.append(CatalogEntry(name, version, list(deps), list(constraints)))
    return entries


@pytest.fixture
def make_cache() -> Callable[[CatalogSpec], DependencyCache]:
    """Factory building a populated DependencyCache from a compact spec."""

    def _make(spec: CatalogSpec) -> DependencyCache:
        return build_cache(entries_from_spec(spec))

    return _make


@pytest.fixture
def context() -> ResolveContext:
    """A resolve context with default prerelease policy."""
    return ResolveContext()
