"""Tests for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from buildpush.cli import main
from buildpush.core.exceptions import BuildError
from buildpush.core.schema import BuildOutputs

GITHUB_ENV = {
    "GITHUB_REPOSITORY": "octo/app",
    "GITHUB_SHA": "abc",
    "GITHUB_RUN_ID": "42",
}
DEFAULT_CONTEXT = "https://github.com/octo/app.git#abc"
VERSIONS = ["--buildx-version", "0.12.0", "--buildkit-version", "0.12.0"]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'app'\n")
    return tmp_path


def test_cli_version(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_args_lines(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(
            main,
            ["args", *VERSIONS, "-i", "tags=app:1,app:2", "-i", "push=true", "--format", "lines"],
            env=GITHUB_ENV,
            catch_exceptions=False,
        )
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == "build"
    assert lines[-1] == DEFAULT_CONTEXT
    assert lines.count("--tag") == 2
    assert "--push" in lines


def test_args_json(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(main, ["args", *VERSIONS, "-i", "context=.", "--format", "json"], env=GITHUB_ENV)
    assert result.exit_code == 0
    args = json.loads(result.output)
    assert args[0] == "build"
    assert args[-1] == "."
    assert "--metadata-file" in args


def test_args_shell_default_format(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(main, ["args", *VERSIONS, "-i", "context=."], env={**GITHUB_ENV, "DOCKER_BIN": "docker"})
    assert result.exit_code == 0
    assert result.output.startswith("docker buildx build ")
    assert result.output.rstrip().endswith(" .")


def test_args_reads_yaml_inputs(runner: CliRunner, project: Path) -> None:
    config = project / "custom.yaml"
    config.write_text("inputs:\n  context: ./app\n  target: prod\n")
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(
            main,
            ["args", *VERSIONS, "--config", str(config), "--format", "lines"],
            env=GITHUB_ENV,
        )
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[lines.index("--target") + 1] == "prod"
    assert lines[-1] == "./app"


def test_args_warns_for_old_buildx(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(
            main,
            ["args", "--buildx-version", "0.11.2", "-i", "annotations=index:a=1", "--format", "lines"],
            env=GITHUB_ENV,
        )
    assert result.exit_code == 0
    assert "Annotations are only supported by buildx >= 0.12.0" in result.output
    assert "--annotation" not in result.output.splitlines()


def test_args_invalid_boolean_input(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(main, ["args", *VERSIONS, "-i", "push=maybe"], env=GITHUB_ENV)
    assert result.exit_code == 1
    assert "YAML 1.2" in result.output


def test_args_malformed_input_option(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        result = runner.invoke(main, ["args", *VERSIONS, "-i", "no-equals-sign"], env=GITHUB_ENV)
    assert result.exit_code == 2
    assert "NAME=VALUE" in result.output


def test_build_dry_run(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        with patch("buildpush.cli.BuildRunner") as build_runner:
            result = runner.invoke(main, ["build", *VERSIONS, "-i", "context=.", "--dry-run"], env=GITHUB_ENV)
    assert result.exit_code == 0
    assert "docker buildx build" in result.output
    build_runner.assert_not_called()


def test_build_writes_step_outputs(runner: CliRunner, project: Path) -> None:
    output_file = project / "github_output"
    outputs = BuildOutputs(imageid="sha256:1111", digest="sha256:2222", metadata='{"a": 1}')
    with runner.isolated_filesystem(temp_dir=project):
        with patch("buildpush.cli.BuildRunner") as build_runner, patch(
            "buildpush.cli.read_outputs", return_value=outputs
        ):
            result = runner.invoke(
                main,
                ["build", *VERSIONS, "-i", "tags=app:1"],
                env={**GITHUB_ENV, "GITHUB_OUTPUT": str(output_file)},
                catch_exceptions=False,
            )
    assert result.exit_code == 0
    build_runner.return_value.run.assert_called_once()
    args = build_runner.return_value.run.call_args[0][0]
    assert args[0] == "build"
    assert args[-1] == DEFAULT_CONTEXT
    content = output_file.read_text(encoding="utf-8")
    assert "imageid=sha256:1111\n" in content
    assert "digest=sha256:2222\n" in content
    assert 'metadata={"a": 1}\n' in content


def test_build_failure_exits_nonzero(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        with patch("buildpush.cli.BuildRunner") as build_runner:
            build_runner.return_value.run.side_effect = BuildError("buildx failed with exit code 1")
            result = runner.invoke(main, ["build", *VERSIONS], env=GITHUB_ENV)
    assert result.exit_code == 1
    assert "buildx failed with exit code 1" in result.output


def test_cli_check_exits_nonzero_when_fail(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        with patch("buildpush.core.health._run_cmd", return_value=(False, "command not found")):
            result = runner.invoke(main, ["check"])
    assert result.exit_code == 1
    assert "docker: FAIL" in result.output
    assert "Install Docker" in result.output


def test_cli_check_all_pass(runner: CliRunner, project: Path) -> None:
    with runner.isolated_filesystem(temp_dir=project):
        with patch("buildpush.core.health._run_cmd") as m:
            m.side_effect = [
                (True, "Docker version 24.0.7"),
                (True, "github.com/docker/buildx v0.12.1 30feaa1"),
                (True, "BuildKit version: v0.12.4"),
            ]
            result = runner.invoke(main, ["check", "-v"])
    assert result.exit_code == 0
    assert "docker: OK" in result.output
    assert "builder (default): BuildKit 0.12.4" in result.output
    assert "All checks passed." in result.output
