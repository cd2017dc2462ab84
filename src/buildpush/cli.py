"""CLI entry point for buildpush."""

from __future__ import annotations

import json
import shlex
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

import click

from buildpush import __version__
from buildpush.buildx.args import ArgsBuilder
from buildpush.buildx.build_log import log_context
from buildpush.buildx.resolver import BuildResolver
from buildpush.buildx.runner import BuildRunner, buildx_command, read_outputs
from buildpush.buildx.version import BuildxCapabilities, StaticCapabilities
from buildpush.core.config import AppConfig, ConfigManager
from buildpush.core.exceptions import BuildPushError
from buildpush.core.health import HealthChecker
from buildpush.core.schema import ArgsResult
from buildpush.protocols import CapabilityOracle


def _parse_input_overrides(values: tuple[str, ...]) -> dict[str, str]:
    """``NAME=VALUE`` pairs from repeated ``--input`` options; later ones win."""
    overrides: dict[str, str] = {}
    for value in values:
        name, sep, raw = value.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected NAME=VALUE, got {value!r}", param_hint="--input")
        overrides[name.strip()] = raw
    return overrides


def _load_config(config_path: Path | None, env_file: Path | None) -> ConfigManager:
    config = ConfigManager(config_path=config_path, env_path=env_file)
    config.load()
    return config


def _tmp_parent(cfg: AppConfig) -> Path | None:
    return Path(cfg.tmp_dir) if cfg.tmp_dir else None


def _config_log_file(cfg: AppConfig) -> Path | None:
    return Path(cfg.log_file) if cfg.log_file else None


def _capabilities(config: ConfigManager, buildx_version: str | None, buildkit_version: str | None) -> CapabilityOracle:
    """Fixed versions when ``--buildx-version`` is given, otherwise ask docker."""
    if buildx_version:
        return StaticCapabilities(buildx=buildx_version, buildkit=buildkit_version)
    return BuildxCapabilities(docker_bin=config.config.docker_bin)


def _build_args(
    config: ConfigManager,
    resolver: BuildResolver,
    overrides: dict[str, str],
    buildx_version: str | None,
    buildkit_version: str | None,
) -> ArgsResult:
    github = config.github()
    builder = ArgsBuilder(
        capabilities=_capabilities(config, buildx_version, buildkit_version),
        resolver=resolver,
        git=github,
    )
    return builder.build(config.read_inputs(overrides))


_INPUT_OPTIONS = [
    click.option("--config", "config_path", type=click.Path(path_type=Path, dir_okay=False), help="YAML config file (default: <project>/buildpush.yaml)."),
    click.option("--env-file", "env_file", type=click.Path(path_type=Path, dir_okay=False), help=".env file (default: <project>/.env)."),
    click.option("--input", "-i", "inputs", multiple=True, metavar="NAME=VALUE", help="Set an action input, e.g. -i tags=app:latest. Repeatable."),
    click.option("--buildx-version", help="Assume this buildx version instead of running `docker buildx version`."),
    click.option("--buildkit-version", help="With --buildx-version: assume this BuildKit version for the builder."),
    click.option("--verbose", "-v", is_flag=True, help="Debug logging."),
    click.option("--log-file", type=click.Path(path_type=Path, dir_okay=False), help="Also write the log to this file."),
]


def input_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by commands that build arguments."""
    for option in reversed(_INPUT_OPTIONS):
        func = option(func)
    return func


def _fail(error: BuildPushError) -> NoReturn:
    click.echo(str(error), err=True)
    raise SystemExit(1) from error


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """buildpush: build `docker buildx build` invocations from declarative inputs."""
    pass


@main.command("args")
@input_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["shell", "json", "lines"]),
    default="shell",
    show_default=True,
    help="shell: full quoted command; json: argument array; lines: one argument per line.",
)
@click.option("--keep-files", is_flag=True, help="Keep the temp dir (iidfile, metadata, secrets) the arguments refer to.")
def args_command(
    config_path: Path | None,
    env_file: Path | None,
    inputs: tuple[str, ...],
    buildx_version: str | None,
    buildkit_version: str | None,
    verbose: bool,
    log_file: Path | None,
    output_format: str,
    keep_files: bool,
) -> None:
    """Print the resolved `docker buildx` arguments."""
    overrides = _parse_input_overrides(inputs)
    try:
        config = _load_config(config_path, env_file)
    except BuildPushError as e:
        _fail(e)
    cfg = config.config
    resolver = BuildResolver(config.github(), parent_dir=_tmp_parent(cfg))
    with log_context(log_file or _config_log_file(cfg), verbose=verbose or cfg.verbose):
        try:
            result = _build_args(config, resolver, overrides, buildx_version, buildkit_version)
        except BuildPushError as e:
            resolver.cleanup()
            _fail(e)
    if output_format == "json":
        click.echo(json.dumps(result.args))
    elif output_format == "lines":
        for arg in result.args:
            click.echo(arg)
    else:
        click.echo(shlex.join(buildx_command(result.args, cfg.docker_bin)))
    if keep_files:
        click.echo(f"Temp dir kept: {resolver.tmp_dir}", err=True)
    else:
        resolver.cleanup()


@main.command()
@input_options
@click.option("--dry-run", is_flag=True, help="Print the command instead of running it.")
def build(
    config_path: Path | None,
    env_file: Path | None,
    inputs: tuple[str, ...],
    buildx_version: str | None,
    buildkit_version: str | None,
    verbose: bool,
    log_file: Path | None,
    dry_run: bool,
) -> None:
    """Build the arguments, run `docker buildx build` and write step outputs."""
    overrides = _parse_input_overrides(inputs)
    try:
        config = _load_config(config_path, env_file)
    except BuildPushError as e:
        _fail(e)
    cfg = config.config
    github = config.github()
    resolver = BuildResolver(github, parent_dir=_tmp_parent(cfg))
    with log_context(log_file or _config_log_file(cfg), verbose=verbose or cfg.verbose) as log:
        try:
            result = _build_args(config, resolver, overrides, buildx_version, buildkit_version)
            if dry_run:
                click.echo(shlex.join(buildx_command(result.args, cfg.docker_bin)))
                return
            BuildRunner(docker_bin=cfg.docker_bin).run(result.args)
            outputs = read_outputs(
                resolver.image_id_file() if "--iidfile" in result.args else None,
                resolver.metadata_file() if "--metadata-file" in result.args else None,
            )
            values = outputs.as_outputs()
            if github.output_path:
                github.write_outputs(values)
            for key, value in values.items():
                if key != "metadata":
                    log.info("%s: %s", key, value)
        except BuildPushError as e:
            _fail(e)
        finally:
            resolver.cleanup()


@main.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output (versions, suggestions).")
@click.option("--builder", default="", help="Builder instance to inspect (default: current builder).")
@click.option("--skip-builder", is_flag=True, help="Skip the builder inspection.")
def check(verbose: bool, builder: str, skip_builder: bool) -> None:
    """Verify docker, buildx and the builder; show suggestions for failures."""
    try:
        config = _load_config(None, None)
    except BuildPushError as e:
        _fail(e)
    checker = HealthChecker(config=config)
    results = checker.check_all(builder=builder, skip_builder=skip_builder)
    all_ok = all(r.ok for r in results)
    for r in results:
        status = "OK" if r.ok else "FAIL"
        click.echo(f"  {r.name}: {status}")
        if verbose or not r.ok:
            click.echo(f"    {r.message}")
        if (verbose or not r.ok) and r.suggestion:
            click.echo(f"    → {r.suggestion}")
    if all_ok:
        hints = [r.suggestion for r in results if r.suggestion and r.ok]
        if hints:
            click.echo("All checks passed. Hints:")
            for h in hints:
                click.echo(f"  → {h}")
        else:
            click.echo("All checks passed.")
    else:
        click.echo("Some checks failed. Fix the issues above or follow the suggested steps.", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
