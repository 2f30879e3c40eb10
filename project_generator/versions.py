"""Version string helpers.

Two flavours of version are handled here: Python interpreter versions as typed
by a user (``3.12`` or ``3.12.1``), and release versions published on the
package index (a practical subset of PEP 440).
"""

from __future__ import annotations

import re

LATEST_PYTHON_MINOR = 14

_PYTHON_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?$")

_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)

_RELEASE_RE = re.compile(
    r"^v?(?:(?P<epoch>\d+)!)?"
    r"(?P<release>\d+(?:\.\d+)*)"
    r"(?P<pre>[-_.]?(?:a|b|c|rc|alpha|beta|pre|preview)[-_.]?\d*)?"
    r"(?P<post>(?:-\d+)|(?:[-_.]?(?:post|rev|r)[-_.]?\d*))?"
    r"(?P<dev>[-_.]?dev[-_.]?\d*)?"
    r"(?:\+(?P<local>[a-z0-9]+(?:[-_.][a-z0-9]+)*))?$",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Python interpreter versions
# ---------------------------------------------------------------------------


def parse_python_version(value: str) -> tuple[int, int, int]:
    """Parse ``3.X`` or ``3.X.Y`` into a comparable tuple.

    Raises:
        ValueError: If the value is not a two or three part numeric version or
            the major version is lower than 3.
    """
    match = _PYTHON_VERSION_RE.match(value.strip())
    if match is None:
        raise ValueError(f"{value!r} is not a valid Python version")
    major, minor, micro = match.groups()
    if int(major) < 3:
        raise ValueError(f"{value!r} is not a valid Python version")
    return (int(major), int(minor), int(micro or 0))


def is_valid_python_version(value: str) -> bool:
    try:
        parse_python_version(value)
    except ValueError:
        return False
    return True


def python_minor_range(start: str, stop_minor: int = LATEST_PYTHON_MINOR) -> list[str]:
    """Return every ``3.X`` release from *start* through ``3.<stop_minor>``.

    ``python_minor_range("3.11")`` -> ``["3.11", "3.12", "3.13", "3.14"]``.
    A start beyond *stop_minor* yields just the start version.
    """
    major, minor, _ = parse_python_version(start)
    last = max(minor, stop_minor)
    return [f"{major}.{m}" for m in range(minor, last + 1)]


def python_version_nodot(value: str) -> str:
    """``3.11`` -> ``311`` (ruff/pyupgrade target naming)."""
    major, minor, _ = parse_python_version(value)
    return f"{major}{minor}"


# ---------------------------------------------------------------------------
# Project (semver) versions
# ---------------------------------------------------------------------------


def is_valid_semver(value: str) -> bool:
    return _SEMVER_RE.match(value.strip()) is not None


# ---------------------------------------------------------------------------
# Package index release versions
# ---------------------------------------------------------------------------


def parse_release(version: str) -> tuple[int, ...] | None:
    """Return the numeric release tuple of *version*, or ``None`` if unparseable.

    Epoch is prepended so that ``1!1.0`` sorts after ``2.0``.
    """
    match = _RELEASE_RE.match(version.strip())
    if match is None:
        return None
    epoch = int(match.group("epoch") or 0)
    release = tuple(int(part) for part in match.group("release").split("."))
    return (epoch, *release)


def is_prerelease(version: str) -> bool:
    """Return ``True`` for alpha/beta/rc and dev releases."""
    match = _RELEASE_RE.match(version.strip())
    if match is None:
        return False
    return bool(match.group("pre") or match.group("dev"))


def is_stable_release(version: str) -> bool:
    return parse_release(version) is not None and not is_prerelease(version)
