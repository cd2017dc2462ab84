"""Configuration loading from YAML, .env and the environment, plus action input parsing."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ValidationError

from buildpush.buildx.attrs import with_builder_id
from buildpush.core.exceptions import ConfigError, InputError
from buildpush.core.schema import Inputs
from buildpush.github import GitHubContext
from buildpush.utils import get_list

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "buildpush.yaml"

_TRUE_INPUTS = ("true", "True", "TRUE")
_FALSE_INPUTS = ("false", "False", "FALSE")


def _find_project_root(start: Path | None = None) -> Path:
    """Find project root by looking for pyproject.toml upward."""
    current = Path(start or Path.cwd()).resolve()
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return Path.cwd().resolve()


def input_env_name(name: str) -> str:
    """Environment variable GitHub Actions uses for an input (``build-args`` → ``INPUT_BUILD-ARGS``)."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


class InputReader:
    """Read action inputs from a mapping of ``INPUT_*`` variables."""

    def __init__(self, source: Mapping[str, str]) -> None:
        self._source = source

    def get_input(self, name: str) -> str:
        return (self._source.get(input_env_name(name)) or "").strip()

    def get_boolean_input(self, name: str, default: bool = False) -> bool:
        """Strict YAML 1.2 core-schema boolean; empty means ``default``."""
        value = self.get_input(name)
        if not value:
            return default
        if value in _TRUE_INPUTS:
            return True
        if value in _FALSE_INPUTS:
            return False
        raise InputError(
            f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}\n"
            "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
        )

    def get_input_list(self, name: str, *, ignore_comma: bool = False, quote: bool = True) -> list[str]:
        return get_list(self.get_input(name), ignore_comma=ignore_comma, quote=quote)

    def get_provenance_input(self, name: str, github: GitHubContext) -> str:
        """``true`` → builder-id of this run, ``false`` stays, other values get a builder-id added."""
        value = self.get_input(name)
        if not value:
            return value
        builder_id = github.workflow_run_url(with_attempt=True)
        try:
            enabled = self.get_boolean_input(name)
        except InputError:
            return with_builder_id(value, builder_id)
        return f"builder-id={builder_id}" if enabled else "false"


def read_inputs(reader: InputReader, github: GitHubContext) -> Inputs:
    """Build :class:`Inputs` from action inputs; an empty context means the default git context."""
    return Inputs(
        add_hosts=reader.get_input_list("add-hosts"),
        allow=reader.get_input_list("allow"),
        annotations=reader.get_input_list("annotations", ignore_comma=True),
        attests=reader.get_input_list("attests", ignore_comma=True),
        build_args=reader.get_input_list("build-args", ignore_comma=True),
        build_contexts=reader.get_input_list("build-contexts", ignore_comma=True),
        builder=reader.get_input("builder"),
        cache_from=reader.get_input_list("cache-from", ignore_comma=True),
        cache_to=reader.get_input_list("cache-to", ignore_comma=True),
        cgroup_parent=reader.get_input("cgroup-parent"),
        context=reader.get_input("context") or github.default_context(),
        file=reader.get_input("file"),
        labels=reader.get_input_list("labels", ignore_comma=True),
        load=reader.get_boolean_input("load"),
        network=reader.get_input("network"),
        no_cache=reader.get_boolean_input("no-cache"),
        no_cache_filters=reader.get_input_list("no-cache-filters"),
        outputs=reader.get_input_list("outputs", ignore_comma=True, quote=False),
        platforms=reader.get_input_list("platforms"),
        provenance=reader.get_provenance_input("provenance", github),
        pull=reader.get_boolean_input("pull"),
        push=reader.get_boolean_input("push"),
        sbom=reader.get_input("sbom"),
        secrets=reader.get_input_list("secrets", ignore_comma=True),
        secret_envs=reader.get_input_list("secret-envs"),
        secret_files=reader.get_input_list("secret-files", ignore_comma=True),
        shm_size=reader.get_input("shm-size"),
        ssh=reader.get_input_list("ssh"),
        tags=reader.get_input_list("tags"),
        target=reader.get_input("target"),
        ulimit=reader.get_input_list("ulimit", ignore_comma=True),
        github_token=reader.get_input("github-token"),
    )


def _yaml_input_value(value: Any) -> str:
    """YAML input defaults may be scalars or lists; lists become one item per line."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "\n".join(_yaml_input_value(v) for v in value)
    return str(value)


class AppConfig(BaseModel):
    """Full application configuration."""

    docker_bin: str = "docker"
    tmp_dir: str | None = None
    log_file: str | None = None
    verbose: bool = False
    inputs: dict[str, str] = {}


class ConfigManager:
    """Load and merge configuration from YAML, .env and the process environment."""

    def __init__(
        self,
        project_root: Path | None = None,
        env_path: Path | None = None,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._root = Path(project_root or _find_project_root()).resolve()
        self._env_path = Path(env_path) if env_path else self._root / ".env"
        self._config_path = Path(config_path) if config_path else self._root / CONFIG_FILE_NAME
        self._environ = os.environ if environ is None else environ
        self._config: AppConfig | None = None
        self._env: dict[str, str] = {}

    def load_env(self) -> dict[str, str]:
        """Load .env file into a dict (without modifying os.environ)."""
        if not self._env_path.exists():
            self._env = {}
            return self._env
        try:
            self._env = {k: v for k, v in dotenv_values(self._env_path).items() if v is not None}
        except (OSError, PermissionError) as e:
            log.warning("Failed to read .env file %s: %s", self._env_path, e)
            self._env = {}
        return self._env

    def load_yaml(self) -> dict[str, Any]:
        """Load YAML config file if it exists."""
        if not self._config_path.exists():
            return {}
        try:
            with open(self._config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, PermissionError) as e:
            log.warning("Failed to read config file %s: %s", self._config_path, e)
            return {}
        except yaml.YAMLError as e:
            log.warning("Malformed YAML in %s: %s", self._config_path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring config file %s: top level is not a mapping", self._config_path)
            return {}
        return data

    def load(self) -> AppConfig:
        """Load YAML and .env, merge with defaults and the environment, return AppConfig."""
        env = {**self.load_env(), **self._environ}
        yaml_data = self.load_yaml()

        # Build merged dict: YAML first, then env overrides
        config_dict: dict[str, Any] = {
            "docker_bin": yaml_data.get("docker_bin", "docker"),
            "tmp_dir": yaml_data.get("tmp_dir") or env.get("RUNNER_TEMP") or None,
            "log_file": yaml_data.get("log_file"),
            "verbose": yaml_data.get("verbose", False),
        }
        env_mapping = {
            "DOCKER_BIN": "docker_bin",
            "BUILDPUSH_TMPDIR": "tmp_dir",
            "BUILDPUSH_LOG_FILE": "log_file",
        }
        for env_key, config_key in env_mapping.items():
            if env.get(env_key):
                config_dict[config_key] = env[env_key]

        # Input defaults from YAML, overridden by INPUT_* variables
        inputs = {
            input_env_name(str(name)): _yaml_input_value(value)
            for name, value in (yaml_data.get("inputs") or {}).items()
        }
        inputs.update({k: v for k, v in env.items() if k.startswith("INPUT_")})
        config_dict["inputs"] = inputs

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {self._config_path}: {e}") from e
        return self._config

    @property
    def config(self) -> AppConfig:
        """Return loaded config; load if not yet loaded."""
        if self._config is None:
            self.load()
        if self._config is None:
            raise RuntimeError("ConfigManager.load() failed to produce a config")
        return self._config

    @property
    def env(self) -> dict[str, str]:
        """Return the merged .env and process environment."""
        if not self._env and self._env_path.exists():
            self.load_env()
        return {**self._env, **self._environ}

    @property
    def project_root(self) -> Path:
        return self._root

    def github(self) -> GitHubContext:
        return GitHubContext.from_env(self.env)

    def input_reader(self, overrides: Mapping[str, str] | None = None) -> InputReader:
        """Reader over configured inputs; ``overrides`` maps input names to values."""
        source = dict(self.config.inputs)
        for name, value in (overrides or {}).items():
            source[input_env_name(name)] = value
        return InputReader(source)

    def read_inputs(self, overrides: Mapping[str, str] | None = None) -> Inputs:
        return read_inputs(self.input_reader(overrides), self.github())
