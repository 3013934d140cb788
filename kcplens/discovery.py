"""Discovery of workspaces, API relationships, sync targets and resources on a kcp server."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .client import APIError, ClientManager, GroupVersionResource, parse_group_version

_WORKSPACES = GroupVersionResource("tenancy.kcp.io", "v1alpha1", "workspaces")
_SYNC_TARGETS = GroupVersionResource("workload.kcp.io", "v1alpha1", "synctargets")
_APIS_GROUP = "apis.kcp.io"
_API_VERSIONS = ("v1alpha2", "v1alpha1")
_CLUSTER_ANNOTATION = "kcp.io/cluster"


@dataclass
class AvailableResource:
    """A resource type served in a workspace."""

    gvr: GroupVersionResource
    kind: str
    namespaced: bool
    count: int = -1


@dataclass
class APIRelationship:
    """An APIExport or APIBinding found in a workspace."""

    name: str
    type: str
    status: str
    export_name: str = ""
    export_path: str = ""
    resource_name: str = ""
    resource_group: str = ""
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncTarget:
    """A physical cluster registered as a sync target."""

    name: str
    status: str
    labels: dict[str, str] = field(default_factory=dict)


@dataclass
class GenericResource:
    """One instance of any resource type, with the workspace it lives in."""

    name: str
    namespace: str
    kind: str
    workspace: str


@dataclass
class WorkspaceNode:
    """A workspace and its full colon-separated path."""

    name: str
    path: str
    children: list[WorkspaceNode] = field(default_factory=list)


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    meta = obj.get("metadata")
    return meta if isinstance(meta, Mapping) else {}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def _name(obj: Mapping[str, Any]) -> str:
    return _text(_metadata(obj).get("name"))


def _namespace(obj: Mapping[str, Any]) -> str:
    return _text(_metadata(obj).get("namespace"))


def _kind(obj: Mapping[str, Any]) -> str:
    return _text(obj.get("kind"))


def _generic(obj: Mapping[str, Any], workspace: str) -> GenericResource:
    return GenericResource(
        name=_name(obj), namespace=_namespace(obj), kind=_kind(obj), workspace=workspace
    )


def is_root(path: str) -> bool:
    """True if the path names the root workspace."""
    return path == "root"


def parent_path(path: str) -> str:
    """The parent of a workspace path; root and top-level names have root as parent."""
    if path == "root" or ":" not in path:
        return "root"
    return path.rsplit(":", 1)[0]


def get_status(obj: Mapping[str, Any]) -> str:
    """Summarise an object's status as its phase, readiness or last condition type."""
    status = obj.get("status")
    if not isinstance(status, Mapping):
        return "Unknown"

    phase = status.get("phase")
    if isinstance(phase, str) and phase:
        return phase

    conditions = status.get("conditions")
    if not isinstance(conditions, list) or not conditions:
        return "Unknown"

    for cond in conditions:
        if isinstance(cond, Mapping) and cond.get("type") == "Ready":
            state = cond.get("status")
            if isinstance(state, str):
                return "Ready" if state == "True" else "NotReady"

    last = conditions[-1]
    if isinstance(last, Mapping) and isinstance(last.get("type"), str):
        return last["type"]
    return "Unknown"


def discover_workspaces(manager: ClientManager, parent_path: str = "") -> list[WorkspaceNode]:
    """List the workspaces directly under a path, using the discovery cache when it holds them."""
    parent = parent_path or "root"

    cached = manager.discovery_cache.get(parent)
    if isinstance(cached, list):
        return cached

    manager.switch_workspace(parent)
    try:
        items = manager.dynamic_client.list(_WORKSPACES)
    except APIError as exc:
        raise APIError(f"failed to list workspaces in {parent}: {exc}", status=exc.status) from exc

    nodes = [WorkspaceNode(name=_name(item), path=f"{parent}:{_name(item)}") for item in items]
    manager.discovery_cache[parent] = nodes
    return nodes


def discover_root_workspaces(manager: ClientManager) -> list[WorkspaceNode]:
    """List the workspaces directly under root."""
    return discover_workspaces(manager, "root")


def _first_served(manager: ClientManager, resource: str) -> list[dict[str, Any]]:
    for version in _API_VERSIONS:
        gvr = GroupVersionResource(_APIS_GROUP, version, resource)
        try:
            items = manager.dynamic_client.list(gvr)
        except APIError:
            continue
        if items:
            return items
    return []


def _export(item: dict[str, Any]) -> APIRelationship:
    rel = APIRelationship(name=_name(item), type="Export", status=get_status(item), raw=item)
    spec = item.get("spec")
    if isinstance(spec, Mapping):
        resources = spec.get("resources")
        if isinstance(resources, list) and resources and isinstance(resources[0], Mapping):
            rel.resource_name = _text(resources[0].get("name"))
            rel.resource_group = _text(resources[0].get("group"))
    return rel


def _binding(item: dict[str, Any]) -> APIRelationship:
    rel = APIRelationship(name=_name(item), type="Binding", status=get_status(item), raw=item)
    spec = item.get("spec")
    reference = spec.get("reference") if isinstance(spec, Mapping) else None
    export = reference.get("export") if isinstance(reference, Mapping) else None
    if isinstance(export, Mapping):
        rel.export_name = _text(export.get("name"))
        rel.export_path = _text(export.get("path"))
    return rel


def discover_api_relationships(manager: ClientManager, path: str) -> list[APIRelationship]:
    """List the APIExports and then the APIBindings in a workspace."""
    manager.switch_workspace(path)
    relationships = [_export(item) for item in _first_served(manager, "apiexports")]
    relationships += [_binding(item) for item in _first_served(manager, "apibindings")]
    return relationships


def discover_sync_targets(manager: ClientManager, path: str) -> list[SyncTarget]:
    """List the SyncTargets in a workspace."""
    manager.switch_workspace(path)
    items = manager.dynamic_client.list(_SYNC_TARGETS)
    return [
        SyncTarget(
            name=_name(item),
            status=get_status(item),
            labels=_string_map(_metadata(item).get("labels")),
        )
        for item in items
    ]


def discover_resources(
    manager: ClientManager, path: str, gvr: GroupVersionResource
) -> list[GenericResource]:
    """List all resources of one type in a workspace."""
    manager.switch_workspace(path)
    return [_generic(item, path) for item in manager.dynamic_client.list(gvr)]


def discover_wildcard_resources(
    manager: ClientManager, gvr: GroupVersionResource
) -> list[GenericResource]:
    """List resources of one type across all workspaces; the current workspace is kept."""
    saved = manager.current_workspace()
    client = manager.client_for_host(manager.base_host() + "/clusters/*")
    try:
        items = client.list(gvr)
    finally:
        manager.switch_workspace(saved)

    resources = []
    for item in items:
        annotations = _string_map(_metadata(item).get("annotations"))
        workspace = annotations.get(_CLUSTER_ANNOTATION) or "unknown"
        resources.append(_generic(item, workspace))
    return resources


def discover_available_resources(manager: ClientManager, path: str) -> list[AvailableResource]:
    """List the resource types a workspace serves, one per name and group."""
    manager.switch_workspace(path)
    try:
        resource_lists = manager.dynamic_client.server_preferred_resources()
    except APIError as exc:
        raise APIError(f"failed to discover resources: {exc}", status=exc.status) from exc

    available: list[AvailableResource] = []
    seen: set[str] = set()
    for resource_list in resource_lists:
        try:
            group, version = parse_group_version(_text(resource_list.get("groupVersion")))
        except ValueError:
            continue
        for entry in resource_list.get("resources") or []:
            if not isinstance(entry, Mapping):
                continue
            name = _text(entry.get("name"))
            if "/" in name:
                continue
            key = f"{name}.{group}"
            if key in seen:
                continue
            seen.add(key)
            available.append(
                AvailableResource(
                    gvr=GroupVersionResource(group, version, name),
                    kind=_text(entry.get("kind")),
                    namespaced=bool(entry.get("namespaced", False)),
                )
            )
    return available


def discover_resources_in_workspace(
    manager: ClientManager, path: str, gvr: GroupVersionResource, namespace: str = ""
) -> list[GenericResource]:
    """List resources of one type in a workspace, limited to a namespace when one is given."""
    manager.switch_workspace(path)
    items = manager.dynamic_client.list(gvr, namespace or None)
    return [_generic(item, path) for item in items]