"""Capability oracle backed by the local docker/buildx installation."""

from __future__ import annotations

import logging
import re
import subprocess

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from buildpush.core.exceptions import VersionError

log = logging.getLogger(__name__)

#: Timeout (seconds) for version and inspect commands.
VERSION_COMMAND_TIMEOUT = 30

# `github.com/docker/buildx v0.12.1 30feaa1...` or `github.com/docker/buildx 0.12.1+azure-1 ...`
_RE_SEMVER = re.compile(r"v?(\d+\.\d+\.\d+)")
# `BuildKit version: v0.12.4` (older buildx prints `Buildkit:`)
_RE_BUILDKIT = re.compile(r"^\s*Build[kK]it(?: version)?:\s*(\S+)", re.MULTILINE)


def parse_version(raw: str) -> Version:
    """Extract the ``major.minor.patch`` part of a version string.

    Pre-release and build suffixes are dropped.
    """
    match = _RE_SEMVER.search(raw)
    if not match:
        raise VersionError(f"Cannot parse version from {raw!r}")
    try:
        return Version(match.group(1))
    except InvalidVersion as e:
        raise VersionError(f"Cannot parse version from {raw!r}: {e}") from e


def version_satisfies(version: Version, version_range: str) -> bool:
    """True if ``version`` is inside ``version_range`` (PEP 440 specifiers, e.g. ``>=0.12.0``)."""
    try:
        spec = SpecifierSet(version_range, prereleases=True)
    except InvalidSpecifier as e:
        raise VersionError(f"Invalid version range {version_range!r}: {e}") from e
    return version in spec


def parse_buildkit_versions(inspect_output: str) -> list[Version | None]:
    """Return the BuildKit version of every node in ``docker buildx inspect`` output.

    A node whose version cannot be parsed is reported as ``None``.
    """
    versions: list[Version | None] = []
    for raw in _RE_BUILDKIT.findall(inspect_output):
        try:
            versions.append(parse_version(raw))
        except VersionError:
            log.debug("Unparsable BuildKit version %r", raw)
            versions.append(None)
    return versions


def _run_cmd(cmd: list[str], timeout: int = VERSION_COMMAND_TIMEOUT) -> str:
    """Run a command and return stdout, raising VersionError when it fails."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise VersionError(f"{cmd[0]} not found") from e
    except subprocess.TimeoutExpired as e:
        raise VersionError(f"{' '.join(cmd)} timed out after {timeout}s") from e
    if result.returncode != 0:
        details = (result.stderr or result.stdout or f"exit code {result.returncode}").strip()
        raise VersionError(f"{' '.join(cmd)} failed: {details}")
    return result.stdout


class BuildxCapabilities:
    """Answer version-range queries by asking ``docker buildx``.

    Each lookup runs at most once per instance: the buildx version and the
    BuildKit versions of each builder are cached.
    """

    def __init__(self, docker_bin: str = "docker") -> None:
        self._docker_bin = docker_bin
        self._buildx_version: Version | None = None
        self._buildkit_versions: dict[str, list[Version | None]] = {}

    def buildx_version(self) -> Version:
        if self._buildx_version is None:
            out = _run_cmd([self._docker_bin, "buildx", "version"])
            self._buildx_version = parse_version(out)
            log.debug("buildx version %s", self._buildx_version)
        return self._buildx_version

    def buildkit_versions(self, builder: str = "") -> list[Version | None]:
        """BuildKit version of each node of ``builder``; empty when none is reported."""
        if builder not in self._buildkit_versions:
            cmd = [self._docker_bin, "buildx", "inspect"]
            if builder:
                cmd.append(builder)
            versions = parse_buildkit_versions(_run_cmd(cmd))
            log.debug("BuildKit versions for builder %r: %s", builder or "(default)", versions)
            self._buildkit_versions[builder] = versions
        return self._buildkit_versions[builder]

    def buildx_version_satisfies(self, version_range: str) -> bool:
        return version_satisfies(self.buildx_version(), version_range)

    def buildkit_version_satisfies(self, builder: str, version_range: str) -> bool:
        """True only if every node reports a BuildKit version inside ``version_range``."""
        versions = self.buildkit_versions(builder)
        if not versions or None in versions:
            return False
        return all(version_satisfies(v, version_range) for v in versions if v is not None)


class StaticCapabilities:
    """Capability oracle with fixed versions (no process calls); ``None`` means unknown."""

    def __init__(self, buildx: str, buildkit: str | None = None) -> None:
        self._buildx = parse_version(buildx)
        self._buildkit = parse_version(buildkit) if buildkit else None

    def buildx_version_satisfies(self, version_range: str) -> bool:
        return version_satisfies(self._buildx, version_range)

    def buildkit_version_satisfies(self, builder: str, version_range: str) -> bool:
        if self._buildkit is None:
            return False
        return version_satisfies(self._buildkit, version_range)
