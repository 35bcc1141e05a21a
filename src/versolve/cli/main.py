"""versolve CLI -- Package version resolution against a catalog.

Entry point for the ``versolve`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve   -- Select one consistent version of every required package.
    versions  -- List the known versions of a package.

Usage::

    versolve resolve catalog.yaml foo bar@1.2.0
    versolve resolve catalog.yaml -p packages.txt --format json
    versolve versions catalog.yaml foo
"""

from __future__ import annotations

import click

from versolve import __version__
from versolve.cli.resolve_cmd import resolve_command
from versolve.cli.versions_cmd import versions_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """versolve: Package version resolution for package registries.

    Select one version of every package transitively required by a set of
    root dependencies so that every version constraint is satisfied.
    """


cli.add_command(resolve_command)
cli.add_command(versions_command)
