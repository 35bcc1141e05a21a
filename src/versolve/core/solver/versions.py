"""Semantic version ordering utilities.

Versions follow SemVer 2.0.0 (``major.minor.patch[-prerelease][+build]``).
Build metadata never affects precedence and is stripped wherever versions
are stored, so ``1.3.1`` and ``1.3.1+local`` represent the same code.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from functools import lru_cache

from versolve.exceptions import ParseError

# ---------------------------------------------------------------------------
# Version parsing
# ---------------------------------------------------------------------------

# Numeric prerelease identifiers may not carry leading zeros, so no two
# spellings share a precedence.
_PRE_IDENT = r"(?:0|[1-9]\d*|\d*[A-Za-z\-][0-9A-Za-z\-]*)"

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<pre>{_PRE_IDENT}(?:\.{_PRE_IDENT})*))?"
    r"(?:\+(?P<build>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?$"
)

VersionKey = tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]


def _prerelease_key(pre: str) -> tuple[tuple[int, int, str], ...]:
    # Numeric identifiers sort below alphanumeric ones and compare numerically.
    key = []
    for ident in pre.split("."):
        if ident.isdigit():
            key.append((0, int(ident), ""))
        else:
            key.append((1, 0, ident))
    return tuple(key)


@lru_cache(maxsize=4096)
def parse_version(version: str) -> VersionKey:
    """Parse a semantic version string into a totally ordered sort key.

    A release sorts above every prerelease of the same ``major.minor.patch``;
    prereleases compare identifier by identifier, and a shorter identifier
    list sorts first when it is a prefix of the longer one.

    Args:
        version: Semantic version string (e.g., "1.2.3", "1.0.0-rc.1").

    Returns:
        A tuple usable as a sort key.

    Raises:
        ParseError: If the string does not match semantic version format.
    """
    m = _SEMVER_RE.match(version)
    if not m:
        raise ParseError(f"Invalid semantic version: {version!r}")
    pre = m.group("pre")
    if pre is None:
        return int(m.group("major")), int(m.group("minor")), int(m.group("patch")), 1, ()
    return (
        int(m.group("major")),
        int(m.group("minor")),
        int(m.group("patch")),
        0,
        _prerelease_key(pre),
    )


def is_valid_version(version: str) -> bool:
    """Return True if *version* is a well-formed semantic version."""
    return _SEMVER_RE.match(version) is not None


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as *a* sorts before, equal to or after *b*."""
    ka, kb = parse_version(a), parse_version(b)
    return (ka > kb) - (ka < kb)


def less_than(a: str, b: str) -> bool:
    """Return True if version *a* has strictly lower precedence than *b*."""
    return parse_version(a) < parse_version(b)


def major_version(version: str) -> int:
    """Return the major version number of *version*."""
    return parse_version(version)[0]


def remove_build_id(version: str) -> str:
    """Strip ``+build`` metadata from a version string."""
    return version.split("+", 1)[0]


def is_prerelease(version: str) -> bool:
    """Return True if the (build-stripped) version carries a prerelease marker."""
    return "-" in remove_build_id(version)
