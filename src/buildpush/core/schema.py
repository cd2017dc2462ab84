"""Pydantic models and data structures for the argument builder."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Inputs(BaseModel):
    """Materialized build inputs, one field per action input."""

    add_hosts: list[str] = Field(default_factory=list)
    allow: list[str] = Field(default_factory=list)
    annotations: list[str] = Field(default_factory=list)
    attests: list[str] = Field(default_factory=list)
    build_args: list[str] = Field(default_factory=list)
    build_contexts: list[str] = Field(default_factory=list)
    builder: str = ""
    cache_from: list[str] = Field(default_factory=list)
    cache_to: list[str] = Field(default_factory=list)
    cgroup_parent: str = ""
    context: str = ""
    file: str = ""
    labels: list[str] = Field(default_factory=list)
    load: bool = False
    network: str = ""
    no_cache: bool = False
    no_cache_filters: list[str] = Field(default_factory=list)
    outputs: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    provenance: str = ""
    pull: bool = False
    push: bool = False
    sbom: str = ""
    secrets: list[str] = Field(default_factory=list)
    secret_envs: list[str] = Field(default_factory=list)
    secret_files: list[str] = Field(default_factory=list)
    shm_size: str = ""
    ssh: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    target: str = ""
    ulimit: list[str] = Field(default_factory=list)
    github_token: str = ""


class Resolution(BaseModel):
    """Outcome of resolving one fallible entry (e.g. a secret).

    Exactly one of ``value`` or ``error`` is meaningful: ``ok`` tells which.
    """

    entry: str
    value: str | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.value is not None


class ArgsResult(BaseModel):
    """Ordered buildx arguments plus the advisory warnings raised building them."""

    args: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def context(self) -> str:
        """The trailing positional build context."""
        return self.args[-1] if self.args else ""


class BuildOutputs(BaseModel):
    """Values read back from the side files after a build."""

    imageid: str = ""
    digest: str = ""
    metadata: str = ""

    def as_outputs(self) -> dict[str, str]:
        """Return the non-empty values keyed by step output name."""
        return {k: v for k, v in self.model_dump().items() if v}
