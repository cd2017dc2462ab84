"""Build the ordered ``docker buildx build`` argument list from inputs."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from buildpush.buildx.attrs import (
    GIT_AUTH_TOKEN_KEY,
    has_attestation_type,
    has_docker_exporter,
    has_git_auth_token_secret,
    has_local_exporter,
    has_tar_exporter,
)
from buildpush.core.exceptions import SecretError
from buildpush.core.schema import ArgsResult, Inputs, Resolution
from buildpush.protocols import CapabilityOracle, GitContext, Resolver

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Minimum versions for version-gated flags
# ---------------------------------------------------------------------------

BUILDX_ANNOTATIONS = ">=0.12.0"
BUILDX_BUILD_CONTEXTS = ">=0.8.0"
BUILDX_IIDFILE_MULTI_PLATFORM = ">=0.4.2"
BUILDX_ATTESTATIONS = ">=0.10.0"
BUILDX_METADATA_FILE = ">=0.6.0"
BUILDKIT_DEFAULT_PROVENANCE = ">=0.11.0"

#: Placeholder in the context input replaced by the default git context.
_RE_DEFAULT_CONTEXT = re.compile(r"\{\{\s*defaultContext\s*\}\}")


def expand_context(context: str, default_context: str) -> str:
    """Replace every ``{{defaultContext}}`` placeholder in ``context``."""
    return _RE_DEFAULT_CONTEXT.sub(lambda _: default_context, context)


def resolve_each(entries: list[str], resolve: Callable[[str], str]) -> list[Resolution]:
    """Resolve entries one by one; a SecretError only fails its own entry."""
    results: list[Resolution] = []
    for entry in entries:
        try:
            results.append(Resolution(entry=entry, value=resolve(entry)))
        except SecretError as e:
            results.append(Resolution(entry=entry, error=str(e)))
    return results


class ArgsBuilder:
    """Turn :class:`Inputs` into buildx arguments.

    Collaborators are injected: ``capabilities`` answers version queries,
    ``resolver`` provides side-file paths and secret/attestation resolution,
    ``git`` provides the default git context and repository visibility.
    """

    def __init__(
        self,
        capabilities: CapabilityOracle,
        resolver: Resolver,
        git: GitContext,
    ) -> None:
        self._capabilities = capabilities
        self._resolver = resolver
        self._git = git

    def build(self, inputs: Inputs) -> ArgsResult:
        """Return ``build``, the build flags, the common flags and the context, in that order."""
        warnings: list[str] = []
        context = expand_context(inputs.context, self._git.default_context())
        args = [
            *self._build_flags(inputs, context, warnings),
            *self._common_flags(inputs),
            context,
        ]
        return ArgsResult(args=args, warnings=warnings)

    def _warn(self, warnings: list[str], message: str) -> None:
        log.warning(message)
        warnings.append(message)

    def _secret_flags(self, resolutions: list[Resolution], warnings: list[str]) -> list[str]:
        flags: list[str] = []
        for resolution in resolutions:
            if resolution.ok:
                flags.extend(["--secret", resolution.value])
            else:
                self._warn(warnings, resolution.error)
        return flags

    def _build_flags(self, inputs: Inputs, context: str, warnings: list[str]) -> list[str]:
        caps = self._capabilities
        args = ["build"]
        for add_host in inputs.add_hosts:
            args.extend(["--add-host", add_host])
        if inputs.allow:
            args.extend(["--allow", ",".join(inputs.allow)])
        if caps.buildx_version_satisfies(BUILDX_ANNOTATIONS):
            for annotation in inputs.annotations:
                args.extend(["--annotation", annotation])
        elif inputs.annotations:
            self._warn(
                warnings,
                "Annotations are only supported by buildx >= 0.12.0; the input 'annotations' is ignored.",
            )
        for build_arg in inputs.build_args:
            args.extend(["--build-arg", build_arg])
        if caps.buildx_version_satisfies(BUILDX_BUILD_CONTEXTS):
            for build_context in inputs.build_contexts:
                args.extend(["--build-context", build_context])
        elif inputs.build_contexts:
            self._warn(
                warnings,
                "Build contexts are only supported by buildx >= 0.8.0; the input 'build-contexts' is ignored.",
            )
        for cache_from in inputs.cache_from:
            args.extend(["--cache-from", cache_from])
        for cache_to in inputs.cache_to:
            args.extend(["--cache-to", cache_to])
        if inputs.cgroup_parent:
            args.extend(["--cgroup-parent", inputs.cgroup_parent])
        args.extend(
            self._secret_flags(resolve_each(inputs.secret_envs, self._resolver.resolve_secret_env), warnings)
        )
        if inputs.file:
            args.extend(["--file", inputs.file])
        if self._wants_image_id_file(inputs):
            args.extend(["--iidfile", str(self._resolver.image_id_file())])
        for label in inputs.labels:
            args.extend(["--label", label])
        for no_cache_filter in inputs.no_cache_filters:
            args.extend(["--no-cache-filter", no_cache_filter])
        for output in inputs.outputs:
            args.extend(["--output", output])
        if inputs.platforms:
            args.extend(["--platform", ",".join(inputs.platforms)])
        if caps.buildx_version_satisfies(BUILDX_ATTESTATIONS):
            args.extend(self._attest_flags(inputs))
        else:
            self._warn(
                warnings,
                "Attestations are only supported by buildx >= 0.10.0; "
                "the inputs 'attests', 'provenance' and 'sbom' are ignored.",
            )
        args.extend(
            self._secret_flags(resolve_each(inputs.secrets, self._resolver.resolve_secret_string), warnings)
        )
        args.extend(
            self._secret_flags(resolve_each(inputs.secret_files, self._resolver.resolve_secret_file), warnings)
        )
        if (
            inputs.github_token
            and not has_git_auth_token_secret(inputs.secrets)
            and context.startswith(self._git.default_context())
        ):
            args.extend(
                [
                    "--secret",
                    self._resolver.resolve_secret_string(f"{GIT_AUTH_TOKEN_KEY}={inputs.github_token}"),
                ]
            )
        if inputs.shm_size:
            args.extend(["--shm-size", inputs.shm_size])
        for ssh in inputs.ssh:
            args.extend(["--ssh", ssh])
        for tag in inputs.tags:
            args.extend(["--tag", tag])
        if inputs.target:
            args.extend(["--target", inputs.target])
        for ulimit in inputs.ulimit:
            args.extend(["--ulimit", ulimit])
        return args

    def _wants_image_id_file(self, inputs: Inputs) -> bool:
        """No image ID for local/tar exports; multi-platform needs buildx >= 0.4.2."""
        if has_local_exporter(inputs.outputs) or has_tar_exporter(inputs.outputs):
            return False
        return not inputs.platforms or self._capabilities.buildx_version_satisfies(BUILDX_IIDFILE_MULTI_PLATFORM)

    def _common_flags(self, inputs: Inputs) -> list[str]:
        args: list[str] = []
        if inputs.builder:
            args.extend(["--builder", inputs.builder])
        if inputs.load:
            args.append("--load")
        if self._capabilities.buildx_version_satisfies(BUILDX_METADATA_FILE):
            args.extend(["--metadata-file", str(self._resolver.metadata_file())])
        if inputs.network:
            args.extend(["--network", inputs.network])
        if inputs.no_cache:
            args.append("--no-cache")
        if inputs.pull:
            args.append("--pull")
        if inputs.push:
            args.append("--push")
        return args

    def _attest_flags(self, inputs: Inputs) -> list[str]:
        """Attestation flags; the ``provenance`` and ``sbom`` inputs win over same-type ``attests`` entries."""
        resolver = self._resolver
        args: list[str] = []

        has_attest_provenance = any(has_attestation_type("provenance", a) for a in inputs.attests)

        provenance_set = False
        sbom_set = False
        if inputs.provenance:
            args.extend(["--attest", resolver.resolve_attestation_attrs(f"type=provenance,{inputs.provenance}")])
            provenance_set = True
        elif (
            not has_attest_provenance
            and self._capabilities.buildkit_version_satisfies(inputs.builder, BUILDKIT_DEFAULT_PROVENANCE)
            and not has_docker_exporter(inputs.outputs, inputs.load)
        ):
            # Private repositories get the minimal, inline-only provenance buildx
            # itself defaults to; everything else gets max mode.
            if self._git.repository_private():
                default_attrs = "mode=min,inline-only=true"
            else:
                default_attrs = "mode=max"
            args.extend(["--attest", f"type=provenance,{resolver.resolve_provenance_attrs(default_attrs)}"])
        if inputs.sbom:
            args.extend(["--attest", resolver.resolve_attestation_attrs(f"type=sbom,{inputs.sbom}")])
            sbom_set = True

        for attest in inputs.attests:
            is_provenance = has_attestation_type("provenance", attest)
            is_sbom = has_attestation_type("sbom", attest)
            if not is_provenance and not is_sbom:
                args.extend(["--attest", resolver.resolve_attestation_attrs(attest)])
            elif is_provenance and not provenance_set:
                args.extend(["--attest", resolver.resolve_provenance_attrs(attest)])
            elif is_sbom and not sbom_set:
                args.extend(["--attest", attest])
        return args
