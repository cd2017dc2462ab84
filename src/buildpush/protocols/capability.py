"""Protocol for buildx/BuildKit capability queries."""

from __future__ import annotations

from typing import Protocol


class CapabilityOracle(Protocol):
    """Answers whether the installed buildx (frontend) and BuildKit (backend) satisfy a version range.

    Ranges use PEP 440 specifier syntax, e.g. ``">=0.12.0"``.
    """

    def buildx_version_satisfies(self, version_range: str) -> bool:
        """Return True if the buildx client version is within ``version_range``."""
        ...

    def buildkit_version_satisfies(self, builder: str, version_range: str) -> bool:
        """Return True if BuildKit on ``builder`` (default builder if empty) is within ``version_range``."""
        ...
