"""buildx argument building: capability checks, secret/attestation resolution, build runner."""

from buildpush.buildx.args import ArgsBuilder, expand_context
from buildpush.buildx.resolver import BuildResolver
from buildpush.buildx.runner import BuildRunner, read_outputs
from buildpush.buildx.version import BuildxCapabilities, StaticCapabilities

__all__ = [
    "ArgsBuilder",
    "BuildResolver",
    "BuildRunner",
    "BuildxCapabilities",
    "StaticCapabilities",
    "expand_context",
    "read_outputs",
]
