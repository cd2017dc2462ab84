"""Shared pytest fixtures for buildpush tests.

Factory functions live in ``_helpers.py``; this module wraps them as
pytest fixtures so tests can receive them via dependency injection.
"""

from __future__ import annotations

import os

import pytest

from buildpush.github import GitHubContext

from _helpers import make_github_context

#: Variables that would leak the surrounding CI run into the tests.
_ENV_PREFIXES = ("GITHUB_", "INPUT_", "BUILDPUSH_", "RUNNER_")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop GitHub Actions and buildpush variables from the process environment."""
    for key in list(os.environ):
        if key.startswith(_ENV_PREFIXES) or key == "DOCKER_BIN":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def github_context() -> GitHubContext:
    """GitHubContext for ``octo/app`` at commit ``0123abcd``, run 42 attempt 2."""
    return make_github_context()
