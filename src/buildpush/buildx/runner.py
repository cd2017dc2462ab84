"""Run ``docker buildx`` with built arguments and read back the build outputs."""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from pathlib import Path

from buildpush.core.exceptions import BuildError
from buildpush.core.schema import BuildOutputs

log = logging.getLogger(__name__)

#: Metadata key holding the pushed/loaded image digest.
METADATA_DIGEST_KEY = "containerimage.digest"


def buildx_command(args: list[str], docker_bin: str = "docker") -> list[str]:
    """Full command line: ``docker buildx <args>``."""
    return [docker_bin, "buildx", *args]


def read_outputs(image_id_file: Path | None, metadata_file: Path | None) -> BuildOutputs:
    """Read image ID, digest and metadata written by buildx; missing files leave fields empty."""
    outputs = BuildOutputs()
    if image_id_file is not None and image_id_file.is_file():
        outputs.imageid = image_id_file.read_text(encoding="utf-8").strip()
        outputs.digest = outputs.imageid
    if metadata_file is not None and metadata_file.is_file():
        content = metadata_file.read_text(encoding="utf-8").strip()
        if content and content != "null":
            outputs.metadata = content
            try:
                metadata = json.loads(content)
            except json.JSONDecodeError as e:
                log.warning("Malformed metadata file %s: %s", metadata_file, e)
                metadata = {}
            if isinstance(metadata, dict) and metadata.get(METADATA_DIGEST_KEY):
                outputs.digest = str(metadata[METADATA_DIGEST_KEY])
    return outputs


class BuildRunner:
    """Execute a buildx invocation, streaming its output to the console."""

    def __init__(self, docker_bin: str = "docker", timeout: int | None = None) -> None:
        self._docker_bin = docker_bin
        self._timeout = timeout

    def run(self, args: list[str]) -> None:
        cmd = buildx_command(args, self._docker_bin)
        log.info("Running: %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, check=False, timeout=self._timeout)
        except FileNotFoundError as e:
            raise BuildError(f"{self._docker_bin} not found") from e
        except subprocess.TimeoutExpired as e:
            raise BuildError(f"buildx build timed out after {self._timeout}s") from e
        if result.returncode != 0:
            raise BuildError(f"buildx failed with exit code {result.returncode}")
