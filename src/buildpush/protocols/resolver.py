"""Protocol for side-file paths, secrets and attestation attribute resolution."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class Resolver(Protocol):
    """Resolves deterministic side-file paths and per-entry build values.

    The ``resolve_secret_*`` methods raise ``SecretError`` when one entry
    cannot be resolved; callers treat that as a per-entry failure.
    """

    def image_id_file(self) -> Path:
        """Path buildx writes the image ID to (``--iidfile``)."""
        ...

    def metadata_file(self) -> Path:
        """Path buildx writes build metadata to (``--metadata-file``)."""
        ...

    def resolve_secret_env(self, kvp: str) -> str:
        ...

    def resolve_secret_string(self, kvp: str) -> str:
        ...

    def resolve_secret_file(self, kvp: str) -> str:
        ...

    def resolve_attestation_attrs(self, attrs: str) -> str:
        ...

    def resolve_provenance_attrs(self, attrs: str) -> str:
        ...
