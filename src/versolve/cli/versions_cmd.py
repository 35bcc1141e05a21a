"""``versolve versions <catalog> <name>`` -- List the known versions of a package."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from versolve.cli.output import print_failure, print_versions
from versolve.core.catalog import build_cache, load_catalog
from versolve.exceptions import ParseError


@click.command("versions")
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False))
@click.argument("name")
def versions_command(catalog: str, name: str) -> None:
    """List every version of NAME known to CATALOG, lowest first.

    Exit code 0 if the package is known, 1 if it is not, 2 on invalid input.
    """
    try:
        cache = build_cache(load_catalog(Path(catalog)))
    except ParseError as exc:
        print_failure("Invalid input", exc.messages)
        sys.exit(2)

    versions = cache.versions_for(name)
    print_versions(name, versions)
    sys.exit(0 if name in cache else 1)
