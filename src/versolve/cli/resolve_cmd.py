"""``versolve resolve <catalog> [packages...]`` -- Select consistent package versions.

Loads a catalog, collects root dependencies and top-level constraints from
the command line and an optional project file, runs the resolver and prints
(or writes) the chosen versions.

Exit Codes:
    0 -- Every package resolved.
    1 -- Resolution failed (conflicting constraints).
    2 -- Invalid input (unreadable catalog, malformed constraints).
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from versolve.cli.output import print_failure, print_resolution_summary
from versolve.core.catalog import build_cache, load_catalog
from versolve.core.project import ProjectFile, load_project_file, resolve_project
from versolve.core.solver import split_constraint
from versolve.exceptions import ParseError, ResolutionError


def _collect_roots(
    packages: tuple[str, ...],
    constraints: tuple[str, ...],
    project: ProjectFile | None,
) -> tuple[list[str], list[str]]:
    """Merge command-line packages and the project file into roots and constraints.

    Every package argument also acts as a top-level constraint, like a
    project file line; a bare name only admits reasonable versions.
    """
    dependencies: list[str] = []
    raw_constraints: list[str] = list(constraints)
    if project is not None:
        dependencies.extend(project.dependencies)
        raw_constraints.extend(project.raw_constraints)
    for package in packages:
        name, _ = split_constraint(package)
        if name not in dependencies:
            dependencies.append(name)
        raw_constraints.append(package)
    return dependencies, raw_constraints


@click.command("resolve")
@click.argument("catalog", type=click.Path(exists=True, dir_okay=False))
@click.argument("packages", nargs=-1)
@click.option(
    "--constraint", "-c", "constraints",
    multiple=True,
    help="Top-level constraint NAME@SPEC (repeatable).",
)
@click.option(
    "--project", "-p",
    type=click.Path(dir_okay=False),
    default=None,
    help="Project file listing one NAME@SPEC per line.",
)
@click.option(
    "--pin", "pins",
    multiple=True,
    help="Pin NAME@VERSION without requiring it (repeatable).",
)
@click.option("--use-rcs", is_flag=True, help="Accept prerelease versions everywhere.")
@click.option("--prefer-latest", is_flag=True, help="Prefer the newest satisfying versions.")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the chosen versions to this JSON file.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def resolve_command(
    catalog: str,
    packages: tuple[str, ...],
    constraints: tuple[str, ...],
    project: str | None,
    pins: tuple[str, ...],
    use_rcs: bool,
    prefer_latest: bool,
    output: str | None,
    output_format: str,
    verbose: bool,
) -> None:
    """Select one version of every package required by PACKAGES.

    CATALOG is a YAML or JSON file listing every known package version.

    Examples:

        versolve resolve catalog.yaml foo bar@1.2.0

        versolve resolve catalog.yaml -p packages.txt --prefer-latest
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        cache = build_cache(load_catalog(Path(catalog)))
        project_file = load_project_file(Path(project)) if project else None
        dependencies, raw_constraints = _collect_roots(packages, constraints, project_file)
        versions = resolve_project(
            cache,
            dependencies,
            raw_constraints,
            pins=pins,
            use_rcs=use_rcs,
            prefer_newest=prefer_latest,
        )
    except ParseError as exc:
        if output_format == "json":
            click.echo(json.dumps({"success": False, "errors": exc.messages}, indent=2))
        else:
            print_failure("Invalid input", exc.messages)
        sys.exit(2)
    except ResolutionError as exc:
        if output_format == "json":
            click.echo(json.dumps(
                {"success": False, "package": exc.package, "errors": [str(exc)]},
                indent=2,
            ))
        else:
            print_failure("Resolution failed", [str(exc)])
        sys.exit(1)

    if output:
        Path(output).write_text(
            json.dumps({"versions": versions}, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )

    if output_format == "json":
        click.echo(json.dumps({"success": True, "versions": versions}, indent=2, sort_keys=True))
    else:
        print_resolution_summary(versions)
        if output:
            click.echo(f"\nVersions written to: {output}")
    sys.exit(0)
