"""Custom exception hierarchy for buildpush."""

from __future__ import annotations


class BuildPushError(Exception):
    """Base exception for buildpush."""

    pass


class ConfigError(BuildPushError):
    """Raised when configuration loading or validation fails."""

    pass


class InputError(BuildPushError):
    """Raised when an action input cannot be parsed."""

    pass


class SecretError(BuildPushError):
    """Raised when a single secret entry cannot be resolved."""

    pass


class VersionError(BuildPushError):
    """Raised when a buildx or BuildKit version cannot be determined."""

    pass


class BuildError(BuildPushError):
    """Raised when the buildx build process fails."""

    pass
