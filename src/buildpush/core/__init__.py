"""Framework core: input schema, exceptions, configuration, health checks.

``config`` and ``health`` depend on :mod:`buildpush.buildx`; import them
directly (``from buildpush.core.config import ConfigManager``).
"""

from buildpush.core.exceptions import (
    BuildError,
    BuildPushError,
    ConfigError,
    InputError,
    SecretError,
    VersionError,
)
from buildpush.core.schema import ArgsResult, BuildOutputs, Inputs, Resolution

__all__ = [
    "ArgsResult",
    "BuildError",
    "BuildOutputs",
    "BuildPushError",
    "ConfigError",
    "InputError",
    "Inputs",
    "Resolution",
    "SecretError",
    "VersionError",
]
