"""Resolve side-file paths, secrets and attestation attributes for one build."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path

from buildpush.buildx import attrs as buildx_attrs
from buildpush.core.exceptions import SecretError
from buildpush.github import GitHubContext

log = logging.getLogger(__name__)

#: File name buildx writes the image ID to, inside the resolver's temp dir.
IMAGE_ID_FILE_NAME = "iidfile"

#: File name buildx writes the build metadata to.
METADATA_FILE_NAME = "metadata-file"

#: Prefix for the per-build temp directory.
TMP_DIR_PREFIX = "buildpush-"

#: Permissions of resolved secret files.
SECRET_FILE_MODE = 0o600


class BuildResolver:
    """Resolver backed by one temp directory per build.

    Paths are deterministic for the lifetime of the resolver: asking twice
    returns the same file, and each distinct secret entry always maps to the
    same file, so building arguments twice gives identical output. Entries
    sharing an id still get separate files.
    """

    def __init__(
        self,
        github: GitHubContext,
        *,
        tmp_dir: Path | None = None,
        parent_dir: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._github = github
        self._tmp_dir = Path(tmp_dir) if tmp_dir else None
        self._parent_dir = Path(parent_dir) if parent_dir else None
        self._env = os.environ if env is None else env
        self._secret_paths: dict[tuple[str, str], Path] = {}

    @property
    def tmp_dir(self) -> Path:
        """Temp directory for this build, created on first use."""
        if self._tmp_dir is None:
            parent = None
            if self._parent_dir is not None:
                self._parent_dir.mkdir(parents=True, exist_ok=True)
                parent = str(self._parent_dir)
            self._tmp_dir = Path(tempfile.mkdtemp(prefix=TMP_DIR_PREFIX, dir=parent))
            log.debug("Created temp dir %s", self._tmp_dir)
        else:
            self._tmp_dir.mkdir(parents=True, exist_ok=True)
        return self._tmp_dir

    def image_id_file(self) -> Path:
        return self.tmp_dir / IMAGE_ID_FILE_NAME

    def metadata_file(self) -> Path:
        return self.tmp_dir / METADATA_FILE_NAME

    def _secret_path(self, kind: str, kvp: str) -> Path:
        """One file per distinct entry, numbered in first-seen order."""
        entry = (kind, kvp)
        if entry not in self._secret_paths:
            self._secret_paths[entry] = self.tmp_dir / f"secret-{len(self._secret_paths)}"
        return self._secret_paths[entry]

    def _write_secret(self, kind: str, kvp: str, key: str, value: bytes) -> str:
        path = self._secret_path(kind, kvp)
        # Owner-only from creation.
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SECRET_FILE_MODE)
        with os.fdopen(fd, "wb") as handle:
            os.fchmod(handle.fileno(), SECRET_FILE_MODE)
            handle.write(value)
        return f"id={key},src={path}"

    def resolve_secret_env(self, kvp: str) -> str:
        """``id=VAR_NAME`` → ``id=<id>,env=<VAR_NAME>``; the variable must be set."""
        key, var_name = buildx_attrs.parse_secret_kvp(kvp)
        if var_name not in self._env:
            raise SecretError(f"secret {key}: environment variable {var_name} is not set")
        return f"id={key},env={var_name}"

    def resolve_secret_string(self, kvp: str) -> str:
        """``id=value`` → ``id=<id>,src=<file holding value>``."""
        key, value = buildx_attrs.parse_secret_kvp(kvp)
        return self._write_secret("string", kvp, key, value.encode("utf-8"))

    def resolve_secret_file(self, kvp: str) -> str:
        """``id=path`` → ``id=<id>,src=<copy of path>``; the file must exist.

        The content is copied byte for byte, so binary secrets (keytabs, DER
        certificates) are passed through unchanged.
        """
        key, source = buildx_attrs.parse_secret_kvp(kvp)
        source_path = Path(source)
        if not source_path.is_file():
            raise SecretError(f"secret file {source} not found")
        try:
            value = source_path.read_bytes()
        except OSError as e:
            raise SecretError(f"secret file {source} could not be read: {e}") from e
        return self._write_secret("file", kvp, key, value)

    def resolve_attestation_attrs(self, attrs: str) -> str:
        return buildx_attrs.resolve_attestation_attrs(attrs)

    def resolve_provenance_attrs(self, attrs: str) -> str:
        """Add the workflow run URL as ``builder-id`` unless the attributes already carry one."""
        return buildx_attrs.with_builder_id(attrs, self._github.workflow_run_url(with_attempt=True))

    def cleanup(self) -> None:
        """Remove the temp directory and everything written into it."""
        if self._tmp_dir is not None and self._tmp_dir.exists():
            shutil.rmtree(self._tmp_dir, ignore_errors=True)
            log.debug("Removed temp dir %s", self._tmp_dir)
