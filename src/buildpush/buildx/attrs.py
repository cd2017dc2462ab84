"""Parse and rewrite buildx attribute strings (exporters, attestations, secrets)."""

from __future__ import annotations

from buildpush.core.exceptions import SecretError
from buildpush.utils import parse_bool, parse_csv_records, split_kvp

GIT_AUTH_TOKEN_KEY = "GIT_AUTH_TOKEN"

#: Stands in for secret values in error messages.
REDACTED = "***"


def _fields(attrs: str) -> list[tuple[str, str]]:
    return [split_kvp(field) for record in parse_csv_records(attrs) for field in record]


def has_attestation_type(name: str, attrs: str) -> bool:
    """True if ``attrs`` (e.g. ``type=sbom,generator=x``) declares ``type=<name>``."""
    return any(key == "type" and value == name for key, value in _fields(attrs))


def has_exporter_type(name: str, exporters: list[str]) -> bool:
    """True if any ``--output`` spec uses the ``name`` exporter.

    A spec without ``type=`` (e.g. ``./out``) is a local export destination.
    """
    for record in parse_csv_records("\n".join(exporters)):
        fields = [field.strip() for field in record]
        if len(fields) == 1 and not fields[0].startswith("type="):
            return name == "local"
        for key, value in (split_kvp(field) for field in fields):
            if key == "type" and value == name:
                return True
    return False


def has_local_exporter(exporters: list[str]) -> bool:
    return has_exporter_type("local", exporters)


def has_tar_exporter(exporters: list[str]) -> bool:
    return has_exporter_type("tar", exporters)


def has_docker_exporter(exporters: list[str], load: bool = False) -> bool:
    """True if the result goes to the docker image store (``--load`` or ``type=docker``)."""
    return load or has_exporter_type("docker", exporters)


def has_git_auth_token_secret(secrets: list[str]) -> bool:
    return any(secret.startswith(f"{GIT_AUTH_TOKEN_KEY}=") for secret in secrets)


def resolve_attestation_attrs(attrs: str) -> str:
    """Normalize attestation attributes for ``--attest``.

    A bare boolean field is shorthand for enabling the attestation, so
    ``type=sbom,false`` becomes ``type=sbom,disabled=true``.
    """
    resolved: list[str] = []
    for record in parse_csv_records(attrs):
        for field in record:
            try:
                enabled = parse_bool(field.strip())
            except ValueError:
                resolved.append(field)
                continue
            resolved.append(f"disabled={str(not enabled).lower()}")
    return ",".join(resolved)


def with_builder_id(attrs: str, builder_id: str) -> str:
    """Append ``builder-id=<builder_id>`` to provenance attributes unless one is already set."""
    if not attrs:
        return f"builder-id={builder_id}"
    for key, _ in _fields(attrs):
        if key == "builder-id":
            return attrs
    return f"{attrs},builder-id={builder_id}"


def parse_secret_kvp(kvp: str) -> tuple[str, str]:
    """Split a ``key=value`` secret entry; raise SecretError if either side is empty.

    The error names the id at most; the value never appears in it.
    """
    key, sep, value = kvp.partition("=")
    if not sep or not key or not value:
        shown = f"{key}={REDACTED}" if sep and key else REDACTED
        raise SecretError(f"{shown} is not a valid secret")
    return key, value
