"""Protocol interfaces for the argument builder's collaborators."""

from buildpush.protocols.capability import CapabilityOracle
from buildpush.protocols.git_context import GitContext
from buildpush.protocols.resolver import Resolver

__all__ = [
    "CapabilityOracle",
    "GitContext",
    "Resolver",
]
