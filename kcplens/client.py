"""HTTP access to a kcp server and the workspace-aware client manager."""

from __future__ import annotations

import atexit
import os
import tempfile
from contextlib import suppress
from dataclasses import dataclass, replace
from typing import Any

import requests

from .kubeconfig import KubeconfigError, RestConfig, build_config_from_context, load_rest_config

DEFAULT_TIMEOUT = 30.0


class APIError(Exception):
    """Raised when the API server cannot be reached or answers with an error."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class GroupVersionResource:
    """Identifies a resource type by API group, version and plural name."""

    group: str
    version: str
    resource: str

    def group_version(self) -> str:
        """The "group/version" string, or just the version for the core group."""
        return f"{self.group}/{self.version}" if self.group else self.version


def parse_group_version(text: str) -> tuple[str, str]:
    """Split a "group/version" string into its group and version."""
    if not text or text == "/":
        return "", ""
    parts = text.split("/")
    if len(parts) > 2:
        raise ValueError(f"unexpected GroupVersion string: {text}")
    return ("", parts[0]) if len(parts) == 1 else (parts[0], parts[1])


def split_base_host(host: str) -> str:
    """Strip a trailing "/clusters/..." part from a server URL."""
    idx = host.find("/clusters/")
    return host[:idx] if idx > 0 else host


_pem_files: dict[bytes, str] = {}


def _pem_file(data: bytes) -> str:
    if data not in _pem_files:
        fd, path = tempfile.mkstemp(prefix="kcplens-", suffix=".pem")
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        _pem_files[data] = path
    return _pem_files[data]


@atexit.register
def _remove_pem_files() -> None:
    for path in _pem_files.values():
        with suppress(OSError):
            os.remove(path)


def _build_session(config: RestConfig) -> requests.Session:
    session = requests.Session()
    session.headers["Accept"] = "application/json"
    if config.bearer_token:
        session.headers["Authorization"] = f"Bearer {config.bearer_token}"
    elif config.username:
        session.auth = (config.username, config.password or "")

    if config.insecure:
        session.verify = False
    elif config.ca_file or config.ca_data:
        session.verify = config.ca_file or _pem_file(config.ca_data)

    cert = config.cert_file or (config.cert_data and _pem_file(config.cert_data))
    key = config.key_file or (config.key_data and _pem_file(config.key_data))
    if cert:
        session.cert = (cert, key) if key else cert
    return session


class DynamicClient:
    """Lists arbitrary resources and discovers API groups on one endpoint."""

    def __init__(self, config: RestConfig, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.config = config
        self.timeout = timeout
        self._session = _build_session(config)

    def _get(self, path: str) -> dict[str, Any]:
        host = self.config.host.rstrip("/")
        url = (host if "://" in host else "https://" + host) + path
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise APIError(f"request to {url} failed: {exc}") from exc
        try:
            body = response.json()
        except ValueError:
            body = None
        if response.status_code >= 400:
            message = f"{response.status_code} {response.reason or ''}".strip()
            if isinstance(body, dict) and body.get("message"):
                message = str(body["message"])
            raise APIError(message, status=response.status_code)
        if not isinstance(body, dict):
            raise APIError(f"invalid JSON from {url}")
        return body

    def list(self, gvr: GroupVersionResource, namespace: str | None = None) -> list[dict[str, Any]]:
        """Return the raw objects of one resource type, optionally in one namespace."""
        path = f"/apis/{gvr.group}/{gvr.version}" if gvr.group else f"/api/{gvr.version}"
        if namespace:
            path += f"/namespaces/{namespace}"
        body = self._get(f"{path}/{gvr.resource}")
        return [item for item in body.get("items") or [] if isinstance(item, dict)]

    def server_preferred_resources(self) -> list[dict[str, Any]]:
        """Return one resource list per API group, for the group's preferred version."""
        group_versions: list[tuple[str, str]] = []
        core_versions = self._get("/api").get("versions") or []
        if core_versions:
            group_versions.append((f"/api/{core_versions[0]}", str(core_versions[0])))
        for group in self._get("/apis").get("groups") or []:
            versions = group.get("versions") or [{}]
            preferred = (group.get("preferredVersion") or versions[0]).get("groupVersion")
            if preferred:
                group_versions.append((f"/apis/{preferred}", str(preferred)))
        return [
            {"groupVersion": gv, "resources": list(self._get(path).get("resources") or [])}
            for path, gv in group_versions
        ]


class ClientManager:
    """Holds the connection to a kcp server and the workspace currently targeted."""

    def __init__(self, config: RestConfig) -> None:
        self._base_host = split_base_host(config.host)
        self.rest_config = config
        self.switch_workspace("root")

    @classmethod
    def from_kubeconfig(cls, kubeconfig_path: str | None) -> ClientManager:
        """Connect using the kubeconfig's current context."""
        try:
            return cls(load_rest_config(kubeconfig_path))
        except KubeconfigError as exc:
            raise KubeconfigError(f"failed to load kubeconfig: {exc}") from exc

    @classmethod
    def with_context(cls, kubeconfig_path: str | None, context_name: str) -> ClientManager:
        """Connect using a named kubeconfig context."""
        try:
            return cls(build_config_from_context(kubeconfig_path, context_name))
        except KubeconfigError as exc:
            raise KubeconfigError(
                f"failed to load kubeconfig with context {context_name}: {exc}"
            ) from exc

    def switch_workspace(self, path: str) -> None:
        """Point all further requests at the given workspace and drop cached discovery."""
        self._current_workspace = path
        self.rest_config = replace(self.rest_config, host=f"{self._base_host}/clusters/{path}")
        self.dynamic_client = DynamicClient(self.rest_config)
        self.discovery_cache: dict[str, Any] = {}

    def set_workspace(self, path: str) -> None:
        self.switch_workspace(path)

    def current_workspace(self) -> str:
        return self._current_workspace

    def base_host(self) -> str:
        return self._base_host

    def client_for_host(self, host: str) -> DynamicClient:
        """A client with the same credentials aimed at another host."""
        return DynamicClient(replace(self.rest_config, host=host))