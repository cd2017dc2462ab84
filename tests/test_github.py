"""Tests for GitHubContext."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from buildpush.core.exceptions import ConfigError
from buildpush.github import GitHubContext

from _helpers import make_github_context


def test_from_env() -> None:
    ctx = GitHubContext.from_env(
        {
            "GITHUB_SERVER_URL": "https://ghe.example.com",
            "GITHUB_REPOSITORY": "octo/app",
            "GITHUB_REF": "refs/tags/v1",
            "GITHUB_SHA": "abc",
            "GITHUB_RUN_ID": "7",
            "GITHUB_RUN_ATTEMPT": "1",
            "GITHUB_OUTPUT": "/tmp/out",
        }
    )
    assert ctx.server_url == "https://ghe.example.com"
    assert ctx.repository == "octo/app"
    assert ctx.run_id == "7"
    assert ctx.output_path == "/tmp/out"
    assert ctx.event_path == ""


def test_from_env_default_server() -> None:
    assert GitHubContext.from_env({}).server_url == "https://github.com"


@pytest.mark.parametrize(
    "ref,sha,expected",
    [
        ("refs/heads/main", "abc", "abc"),
        ("main", "abc", "abc"),
        ("refs/pull/12/merge", "abc", "refs/pull/12/merge"),
        ("refs/heads/main", "", "refs/heads/main"),
        ("main", "", "main"),
    ],
)
def test_git_ref(ref: str, sha: str, expected: str) -> None:
    assert make_github_context(ref=ref, sha=sha).git_ref() == expected


def test_default_context(github_context: GitHubContext) -> None:
    assert github_context.default_context() == "https://github.com/octo/app.git#0123abcd"


def test_workflow_run_url(github_context: GitHubContext) -> None:
    ctx = github_context
    assert ctx.workflow_run_url() == "https://github.com/octo/app/actions/runs/42"
    assert ctx.workflow_run_url(with_attempt=True) == "https://github.com/octo/app/actions/runs/42/attempts/2"
    assert make_github_context(run_attempt="").workflow_run_url(with_attempt=True).endswith("/runs/42")


def test_repository_private(tmp_path: Path) -> None:
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"repository": {"private": True}}), encoding="utf-8")
    assert make_github_context(event_path=str(event)).repository_private() is True


def test_repository_private_unknown(tmp_path: Path) -> None:
    assert make_github_context().repository_private() is False
    assert make_github_context(event_path=str(tmp_path / "missing.json")).repository_private() is False


def test_malformed_event_payload_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    event = tmp_path / "event.json"
    event.write_text("{not json", encoding="utf-8")
    ctx = make_github_context(event_path=str(event))
    with caplog.at_level("WARNING"):
        assert ctx.event_payload() == {}
    assert "Failed to read event payload" in caplog.text


def test_write_outputs(tmp_path: Path) -> None:
    out = tmp_path / "github_output"
    ctx = make_github_context(output_path=str(out))
    ctx.write_outputs({"imageid": "sha256:abc", "metadata": '{\n  "a": 1\n}'})
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "imageid=sha256:abc"
    assert lines[1].startswith("metadata<<ghadelimiter_")
    delimiter = lines[1].split("<<", 1)[1]
    assert lines[2:] == ["{", '  "a": 1', "}", delimiter]


def test_write_outputs_without_output_file() -> None:
    with pytest.raises(ConfigError, match="GITHUB_OUTPUT"):
        make_github_context().write_outputs({"digest": "x"})
