"""Health checks for docker, buildx and the selected builder."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from buildpush.buildx.version import (
    parse_buildkit_versions,
    parse_version,
    version_satisfies,
)
from buildpush.core.config import ConfigManager
from buildpush.core.exceptions import VersionError

#: Oldest buildx that supports every flag the argument builder can emit.
RECOMMENDED_BUILDX = ">=0.12.0"


@dataclass
class HealthCheckResult:
    """Result of a single health check."""

    name: str
    ok: bool
    message: str = ""
    suggestion: str = ""


def _run_cmd(cmd: list[str], timeout: int = 10) -> tuple[bool, str]:
    """Run command, return (success, output_or_error)."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if result.returncode == 0:
            return True, (result.stdout or "").strip()
        return False, (result.stderr or result.stdout or f"exit code {result.returncode}").strip()
    except FileNotFoundError:
        return False, "command not found"
    except subprocess.TimeoutExpired:
        return False, "timeout"
    except OSError as e:
        return False, str(e)


class HealthChecker:
    """Run health checks for docker, buildx and the builder used for builds."""

    def __init__(self, config: ConfigManager | None = None) -> None:
        self._config = config or ConfigManager()

    @property
    def _docker_bin(self) -> str:
        return self._config.config.docker_bin

    def check_docker(self) -> HealthCheckResult:
        ok, out = _run_cmd([self._docker_bin, "--version"])
        if not ok:
            return HealthCheckResult(
                name="docker",
                ok=False,
                message=out or "docker --version failed",
                suggestion="Install Docker or set DOCKER_BIN to the docker CLI path.",
            )
        return HealthCheckResult(name="docker", ok=True, message=out)

    def check_buildx(self) -> HealthCheckResult:
        ok, out = _run_cmd([self._docker_bin, "buildx", "version"])
        if not ok:
            return HealthCheckResult(
                name="buildx",
                ok=False,
                message=out or "docker buildx version failed",
                suggestion="Install the buildx plugin (https://github.com/docker/buildx#installing).",
            )
        try:
            version = parse_version(out)
        except VersionError as e:
            return HealthCheckResult(name="buildx", ok=False, message=str(e))
        suggestion = ""
        if not version_satisfies(version, RECOMMENDED_BUILDX):
            suggestion = (
                f"buildx {version} ignores some inputs (annotations, build contexts or attestations); "
                f"upgrade to buildx {RECOMMENDED_BUILDX.lstrip('>=')} or later."
            )
        return HealthCheckResult(name="buildx", ok=True, message=f"buildx {version}", suggestion=suggestion)

    def check_builder(self, builder: str = "") -> HealthCheckResult:
        cmd = [self._docker_bin, "buildx", "inspect"]
        if builder:
            cmd.append(builder)
        label = builder or "(default)"
        ok, out = _run_cmd(cmd)
        if not ok:
            return HealthCheckResult(
                name="builder",
                ok=False,
                message=f"builder {label}: {out}",
                suggestion="Create one with `docker buildx create --use` or pass an existing --builder.",
            )
        versions = parse_buildkit_versions(out)
        if not versions or None in versions:
            return HealthCheckResult(
                name="builder",
                ok=True,
                message=f"builder {label} does not report a BuildKit version for every node",
                suggestion="Default provenance attestations need BuildKit >= 0.11.0 on all nodes.",
            )
        listed = ", ".join(str(v) for v in versions)
        return HealthCheckResult(name="builder", ok=True, message=f"builder {label}: BuildKit {listed}")

    def check_all(self, *, builder: str = "", skip_builder: bool = False) -> list[HealthCheckResult]:
        """Run all enabled checks; buildx and builder checks are skipped when docker is missing."""
        results = [self.check_docker()]
        if not results[0].ok:
            return results
        results.append(self.check_buildx())
        if not skip_builder and results[-1].ok:
            results.append(self.check_builder(builder))
        return results
