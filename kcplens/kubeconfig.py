"""Reading kubeconfig files and turning a context into connection settings."""

from __future__ import annotations

import base64
import binascii
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


class KubeconfigError(Exception):
    """Raised when a kubeconfig file cannot be found, read or understood."""


@dataclass
class RestConfig:
    """Everything needed to talk to one API server endpoint."""

    host: str
    bearer_token: str | None = None
    username: str | None = None
    password: str | None = None
    ca_file: str | None = None
    ca_data: bytes | None = None
    cert_file: str | None = None
    cert_data: bytes | None = None
    key_file: str | None = None
    key_data: bytes | None = None
    insecure: bool = False


def resolve_kubeconfig_path(path: str | None) -> str:
    """Return the given path, else $KUBECONFIG, else ~/.kube/config."""
    if path:
        return path
    if os.environ.get("KUBECONFIG"):
        return os.environ["KUBECONFIG"]
    try:
        return str(Path.home() / ".kube" / "config")
    except (RuntimeError, KeyError) as exc:
        raise KubeconfigError(f"cannot determine home directory: {exc}") from exc


def load_kubeconfig(path: str | None) -> dict[str, Any]:
    """Parse a kubeconfig file into a mapping."""
    resolved = resolve_kubeconfig_path(path)
    try:
        with open(resolved, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise KubeconfigError(f"failed to load kubeconfig: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise KubeconfigError(f"failed to load kubeconfig: {resolved}: top level is not a mapping")
    return dict(data)


def _named(entries: Any, kind: str) -> dict[str, dict[str, Any]]:
    result: dict[str, dict[str, Any]] = {}
    for entry in entries or []:
        if not isinstance(entry, Mapping) or "name" not in entry:
            raise KubeconfigError(f"invalid kubeconfig: {kind} entry without a name")
        body = entry.get(kind) or {}
        if not isinstance(body, Mapping):
            raise KubeconfigError(f"invalid kubeconfig: {kind} {entry['name']!r} is malformed")
        result[str(entry["name"])] = dict(body)
    return result


def get_contexts(path: str | None) -> tuple[list[str], str]:
    """Return the context names in file order and the current context name."""
    data = load_kubeconfig(path)
    return list(_named(data.get("contexts"), "context")), str(data.get("current-context") or "")


def build_config_from_context(path: str | None, context_name: str | None) -> RestConfig:
    """Build connection settings for a named context, or the current one when none is named."""
    resolved = resolve_kubeconfig_path(path)
    data = load_kubeconfig(resolved)
    base_dir = Path(resolved).resolve().parent

    def file_of(value: Any) -> str | None:
        if not value:
            return None
        candidate = Path(str(value)).expanduser()
        return str(candidate if candidate.is_absolute() else base_dir / candidate)

    def decoded(source: Mapping[str, Any], field: str) -> bytes | None:
        if not source.get(field):
            return None
        try:
            return base64.b64decode(str(source[field]), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise KubeconfigError(f"invalid base64 in {field}: {exc}") from exc

    name = context_name or str(data.get("current-context") or "")
    if not name:
        raise KubeconfigError("invalid configuration: no configuration has been provided")
    contexts = _named(data.get("contexts"), "context")
    if name not in contexts:
        raise KubeconfigError(f'context "{name}" does not exist')
    context = contexts[name]

    clusters = _named(data.get("clusters"), "cluster")
    cluster_name = str(context.get("cluster") or "")
    if cluster_name not in clusters:
        raise KubeconfigError(f'cluster "{cluster_name}" does not exist')
    cluster = clusters[cluster_name]
    if not cluster.get("server"):
        raise KubeconfigError(f'no server found for cluster "{cluster_name}"')

    users = _named(data.get("users"), "user")
    user_name = str(context.get("user") or "")
    if user_name and user_name not in users:
        raise KubeconfigError(f'user "{user_name}" does not exist')
    user = users.get(user_name, {})

    token = user.get("token")
    token_file = file_of(user.get("tokenFile"))
    if not token and token_file:
        try:
            token = Path(token_file).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise KubeconfigError(f"cannot read token file: {exc}") from exc

    return RestConfig(
        host=str(cluster["server"]),
        bearer_token=str(token) if token else None,
        username=str(user["username"]) if user.get("username") else None,
        password=str(user["password"]) if user.get("password") else None,
        ca_file=file_of(cluster.get("certificate-authority")),
        ca_data=decoded(cluster, "certificate-authority-data"),
        cert_file=file_of(user.get("client-certificate")),
        cert_data=decoded(user, "client-certificate-data"),
        key_file=file_of(user.get("client-key")),
        key_data=decoded(user, "client-key-data"),
        insecure=bool(cluster.get("insecure-skip-tls-verify", False)),
    )


def load_rest_config(path: str | None) -> RestConfig:
    """Build connection settings for the kubeconfig's current context."""
    return build_config_from_context(path, None)