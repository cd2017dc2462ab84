"""GitHub Actions runtime context: repository, ref, run URL, event payload and step outputs."""

from __future__ import annotations

import json
import logging
import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from buildpush.core.exceptions import ConfigError

log = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://github.com"


@dataclass
class GitHubContext:
    """Values GitHub exposes to a workflow step through ``GITHUB_*`` variables."""

    server_url: str = DEFAULT_SERVER_URL
    repository: str = ""
    ref: str = ""
    sha: str = ""
    run_id: str = ""
    run_attempt: str = ""
    event_path: str = ""
    output_path: str = ""

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> GitHubContext:
        env = os.environ if env is None else env
        return cls(
            server_url=env.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL,
            repository=env.get("GITHUB_REPOSITORY", ""),
            ref=env.get("GITHUB_REF", ""),
            sha=env.get("GITHUB_SHA", ""),
            run_id=env.get("GITHUB_RUN_ID", ""),
            run_attempt=env.get("GITHUB_RUN_ATTEMPT", ""),
            event_path=env.get("GITHUB_EVENT_PATH", ""),
            output_path=env.get("GITHUB_OUTPUT", ""),
        )

    def git_ref(self) -> str:
        """Ref to check out for the default git context.

        A short branch name is qualified as ``refs/heads/<name>``; the commit
        sha is preferred over any ref except pull request refs.
        """
        ref = self.ref
        if self.sha and ref and not ref.startswith("refs/"):
            ref = f"refs/heads/{ref}"
        if self.sha and not ref.startswith("refs/pull/"):
            ref = self.sha
        return ref

    def default_context(self) -> str:
        """Git URL of this repository at the current ref, e.g. ``https://github.com/o/r.git#<sha>``."""
        return f"{self.server_url}/{self.repository}.git#{self.git_ref()}"

    def workflow_run_url(self, with_attempt: bool = False) -> str:
        url = f"{self.server_url}/{self.repository}/actions/runs/{self.run_id}"
        if with_attempt and self.run_attempt:
            url = f"{url}/attempts/{self.run_attempt}"
        return url

    def event_payload(self) -> dict[str, Any]:
        """Load the webhook event payload; empty when unavailable or malformed."""
        if not self.event_path:
            return {}
        path = Path(self.event_path)
        if not path.is_file():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Failed to read event payload %s: %s", path, e)
            return {}
        return payload if isinstance(payload, dict) else {}

    def repository_private(self) -> bool:
        repository = self.event_payload().get("repository") or {}
        return bool(repository.get("private", False))

    def write_outputs(self, values: Mapping[str, str]) -> None:
        """Append step outputs to the ``GITHUB_OUTPUT`` file.

        Multi-line values use the ``name<<DELIMITER`` form so later steps read
        them back intact.
        """
        if not self.output_path:
            raise ConfigError("GITHUB_OUTPUT is not set; cannot write step outputs")
        with open(self.output_path, "a", encoding="utf-8") as handle:
            for key, value in values.items():
                if "\n" in value:
                    delimiter = f"ghadelimiter_{uuid.uuid4()}"
                    handle.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
                else:
                    handle.write(f"{key}={value}\n")
