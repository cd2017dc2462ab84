"""Protocol for source-control context lookups."""

from __future__ import annotations

from typing import Protocol


class GitContext(Protocol):
    """Source-control facts the argument builder needs."""

    def default_context(self) -> str:
        """Git URL of the current repository at the current ref."""
        ...

    def repository_private(self) -> bool:
        """True if the repository is known to be private."""
        ...
