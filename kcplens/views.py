"""Screens of the browser: workspaces, sync targets, contexts, API relationships and resources."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import yaml

from .client import GroupVersionResource
from .discovery import (
    APIRelationship,
    AvailableResource,
    GenericResource,
    SyncTarget,
    WorkspaceNode,
)
from .widgets import (
    Command,
    FilterState,
    KeyMsg,
    ListModel,
    Quit,
    Style,
    Viewport,
    WindowSizeMsg,
    batch,
)

DOC_STYLE = Style(margin=(1, 2, 1, 2))
HELP_STYLE = Style(margin=(1, 2, 1, 2), foreground="241")
EMPTY_STYLE = Style(margin=(1, 2, 1, 2), foreground="241", italic=True)
_YAML_TITLE_STYLE = Style(margin=(1, 2, 0, 2), bold=True)


def _startup_command() -> Optional[Command]:
    """The command a view issues when it starts: an empty batch, as no view loads anything itself."""
    return batch()


@dataclass(frozen=True)
class WorkspaceItem:
    """A workspace shown as a list entry."""

    node: WorkspaceNode

    @property
    def title(self) -> str:
        return self.node.name

    @property
    def description(self) -> str:
        return "Path: " + self.node.path

    @property
    def filter_value(self) -> str:
        return f"{self.node.name} {self.node.path}"


class WorkspaceList:
    """The list of sub-workspaces of the current workspace."""

    def __init__(self) -> None:
        self.list = ListModel(
            title="KCP Workspaces",
            show_title=True,
            show_status_bar=False,
            show_help=False,
            filtering_enabled=False,
        )
        self.current_path = "root"
        self.has_sub_workspaces = False

    def set_items(self, nodes: list[WorkspaceNode]) -> Optional[Command]:
        self.has_sub_workspaces = bool(nodes)
        return self.list.set_items(WorkspaceItem(node) for node in nodes)

    def set_current_path(self, path: str) -> None:
        self.current_path = path
        self.list.title = f"Workspace: {path}"

    def init(self) -> Optional[Command]:
        return _startup_command()

    def update(self, msg: Any) -> Optional[Command]:
        if isinstance(msg, KeyMsg) and msg.key == "ctrl+c":
            return Quit
        if isinstance(msg, WindowSizeMsg):
            h, v = DOC_STYLE.frame_size()
            self.list.set_size(msg.width - h, msg.height - v - 4)
        return self.list.update(msg)

    def view(self) -> str:
        if self.has_sub_workspaces:
            return (
                DOC_STYLE.render(self.list.view())
                + "\n"
                + HELP_STYLE.render(
                    f"Current: {self.current_path} | [a] APIs  [s] SyncTargets  "
                    "[r] Resources  [enter] Navigate  [backspace] Back  [q] Quit"
                )
            )
        return (
            DOC_STYLE.render(self.list.title)
            + "\n\n"
            + EMPTY_STYLE.render(
                "No sub-workspaces. Use the commands below to explore this workspace."
            )
            + "\n\n"
            + HELP_STYLE.render(
                f"Current: {self.current_path} | [a] APIs  [s] SyncTargets  "
                "[r] Resources  [backspace] Back  [q] Quit"
            )
        )

    def selected_node(self) -> WorkspaceNode | None:
        item = self.list.selected_item()
        return item.node if isinstance(item, WorkspaceItem) else None


@dataclass(frozen=True)
class SyncTargetItem:
    """A sync target shown as a list entry."""

    target: SyncTarget

    @property
    def title(self) -> str:
        return self.target.name

    @property
    def description(self) -> str:
        return f"Status: {self.target.status}"

    @property
    def filter_value(self) -> str:
        return self.target.name


class SyncTargetList:
    """The sync targets of a workspace."""

    def __init__(self) -> None:
        self.list = ListModel(title="Sync Targets (Physical Clusters)")

    def set_items(self, targets: list[SyncTarget]) -> Optional[Command]:
        return self.list.set_items(SyncTargetItem(target) for target in targets)

    def init(self) -> Optional[Command]:
        return _startup_command()

    def update(self, msg: Any) -> Optional[Command]:
        if isinstance(msg, WindowSizeMsg):
            h, v = DOC_STYLE.frame_size()
            self.list.set_size(msg.width - h, msg.height - v)
        return self.list.update(msg)

    def view(self) -> str:
        help_text = HELP_STYLE.render("[backspace/esc] Back  [q] Quit")
        return DOC_STYLE.render(self.list.view()) + "\n" + help_text


@dataclass(frozen=True)
class ContextItem:
    """A kubeconfig context shown as a list entry."""

    name: str

    @property
    def title(self) -> str:
        return self.name

    @property
    def description(self) -> str:
        return "Context"

    @property
    def filter_value(self) -> str:
        return self.name


class ContextSelector:
    """Lets the user pick one of the kubeconfig's contexts."""

    def __init__(self, kubeconfig_path: str, contexts: list[str], current_context: str) -> None:
        self.list = ListModel(
            (ContextItem(name) for name in contexts),
            title="Select a kubeconfig context",
            show_title=True,
            show_status_bar=True,
            show_help=False,
            filtering_enabled=True,
        )
        self.has_selected = False
        self.kubeconfig_path = kubeconfig_path
        self.contexts = list(contexts)
        self.current_context = current_context

    def selected_context(self) -> str:
        """The chosen context name, or an empty string while nothing is chosen."""
        if self.has_selected:
            item = self.list.selected_item()
            if item is not None:
                return item.filter_value
        return ""

    def init(self) -> Optional[Command]:
        return _startup_command()

    def update(self, msg: Any) -> Optional[Command]:
        if isinstance(msg, KeyMsg) and self.list.filter_state is not FilterState.FILTERING:
            if msg.key == "enter":
                self.has_selected = True
                return None
            if msg.key in ("ctrl+c", "q"):
                return Quit
        elif isinstance(msg, WindowSizeMsg):
            h, v = DOC_STYLE.frame_size()
            self.list.set_size(msg.width - h, msg.height - v - 4)
        return self.list.update(msg)

    def view(self) -> str:
        return (
            DOC_STYLE.render(self.list.view())
            + "\n"
            + HELP_STYLE.render(
                f"Current context: {self.current_context} | [enter] Select  [q] Quit"
            )
        )


@dataclass(frozen=True)
class APIItem:
    """An API export or binding shown as a list entry."""

    rel: APIRelationship

    @property
    def title(self) -> str:
        if self.rel.type == "Binding" and self.rel.export_name:
            return f"Binding: {self.rel.export_name}"
        if self.rel.type == "Export" and self.rel.resource_name:
            return f"Export: {self.rel.resource_group}/{self.rel.resource_name}"
        return self.rel.name

    @property
    def description(self) -> str:
        if self.rel.type == "Binding":
            path = self.rel.export_path or "unknown"
            return f"from: {path} | status: {self.rel.status}"
        if self.rel.type == "Export":
            return f"provides API to consumers | status: {self.rel.status}"
        return f"status: {self.rel.status}"

    @property
    def filter_value(self) -> str:
        return " ".join(
            (self.rel.name, self.rel.type, self.rel.export_name, self.rel.resource_name)
        )


class APIListState(Enum):
    LIST = "list"
    DETAIL = "detail"


class APIList:
    """API relationships of a workspace, with a YAML view of the selected one."""

    def __init__(self) -> None:
        self.list = ListModel(title="API Relationships", show_status_bar=False)
        self.viewport = Viewport()
        self.state = APIListState.LIST
        self.ready = False

    def set_workspace_path(self, path: str) -> None:
        self.list.title = f"API Relationships in {path}"

    def set_items(self, relationships: list[APIRelationship]) -> Optional[Command]:
        return self.list.set_items(APIItem(rel) for rel in relationships)

    def init(self) -> Optional[Command]:
        return _startup_command()

    def _show_yaml(self, item: APIItem) -> None:
        try:
            text = yaml.safe_dump(item.rel.raw, default_flow_style=False, sort_keys=True)
        except yaml.YAMLError as exc:
            text = f"Error: {exc}"
        self.viewport.set_content(text)
        self.state = APIListState.DETAIL

    def update(self, msg: Any) -> Optional[Command]:
        if isinstance(msg, KeyMsg) and msg.key == "y" and self.state is APIListState.LIST:
            item = self.list.selected_item()
            if isinstance(item, APIItem):
                self._show_yaml(item)
                return None
        elif isinstance(msg, WindowSizeMsg):
            h, v = DOC_STYLE.frame_size()
            self.list.set_size(msg.width - h, msg.height - v)
            self.viewport = Viewport(msg.width - h, msg.height - v - 2)
            self.ready = True

        if self.state is APIListState.LIST:
            return self.list.update(msg)
        return self.viewport.update(msg)

    def view(self) -> str:
        if self.state is APIListState.DETAIL:
            title = _YAML_TITLE_STYLE.render("YAML (press backspace/esc to go back)")
            help_text = HELP_STYLE.render("[backspace/esc] Back  [q] Quit")
            return title + "\n" + DOC_STYLE.render(self.viewport.view()) + "\n" + help_text
        help_text = HELP_STYLE.render("[y] Show YAML  [backspace/esc] Back  [q] Quit")
        return DOC_STYLE.render(self.list.view()) + "\n" + help_text

    def selected_relationship(self) -> APIRelationship | None:
        item = self.list.selected_item()
        return item.rel if isinstance(item, APIItem) else None

    def in_detail_view(self) -> bool:
        return self.state is APIListState.DETAIL

    def exit_detail_view(self) -> None:
        self.state = APIListState.LIST


def _group_label(group: str) -> str:
    return group or "core"


@dataclass(frozen=True)
class AvailableResourceItem:
    """A resource type shown as a list entry."""

    res: AvailableResource

    @property
    def title(self) -> str:
        gvr = self.res.gvr
        return f"{self.res.kind} ({gvr.resource}.{_group_label(gvr.group)})"

    @property
    def description(self) -> str:
        scope = "namespaced" if self.res.namespaced else "cluster-scoped"
        gvr = self.res.gvr
        return f"GVR: {gvr.group_version()}/{gvr.resource} | {scope}"

    @property
    def filter_value(self) -> str:
        return f"{self.res.kind} {self.res.gvr.resource} {self.res.gvr.group}"


class AvailableResourceList:
    """The resource types served in a workspace."""

    def __init__(self) -> None:
        self.list = ListModel(title="Available Resources")

    @property
    def title(self) -> str:
        return self.list.title

    @title.setter
    def title(self, value: str) -> None:
        self.list.title = value

    def set_items(self, resources: list[AvailableResource]) -> Optional[Command]:
        return self.list.set_items(AvailableResourceItem(res) for res in resources)

    def init(self) -> Optional[Command]:
        return _startup_command()

    def update(self, msg: Any) -> Optional[Command]:
        if isinstance(msg, WindowSizeMsg):
            h, v = DOC_STYLE.frame_size()
            self.list.set_size(msg.width - h, msg.height - v)
        return self.list.update(msg)

    def view(self) -> str:
        help_text = HELP_STYLE.render("[enter] List instances  [backspace/esc] Back  [q] Quit")
        return DOC_STYLE.render(self.list.view()) + "\n" + help_text

    def selected_resource(self) -> AvailableResource | None:
        item = self.list.selected_item()
        return item.res if isinstance(item, AvailableResourceItem) else None


@dataclass(frozen=True)
class ResourceListItem:
    """One resource instance shown as a list entry."""

    res: GenericResource

    @property
    def title(self) -> str:
        return self.res.name

    @property
    def description(self) -> str:
        namespace = self.res.namespace or "-"
        return f"Namespace: {namespace} | Workspace: {self.res.workspace}"

    @property
    def filter_value(self) -> str:
        return f"{self.res.name} {self.res.namespace}"


class ResourceInstanceList:
    """The instances of one resource type."""

    def __init__(self) -> None:
        self.list = ListModel(title="Resources")
        self.gvr = GroupVersionResource("", "", "")

    def set_items(self, resources: list[GenericResource]) -> Optional[Command]:
        return self.list.set_items(ResourceListItem(res) for res in resources)

    def set_gvr(self, gvr: GroupVersionResource) -> None:
        self.gvr = gvr
        self.list.title = f"{gvr.resource} ({gvr.resource}.{_group_label(gvr.group)})"

    def init(self) -> Optional[Command]:
        return _startup_command()

    def update(self, msg: Any) -> Optional[Command]:
        if isinstance(msg, WindowSizeMsg):
            h, v = DOC_STYLE.frame_size()
            self.list.set_size(msg.width - h, msg.height - v)
        return self.list.update(msg)

    def view(self) -> str:
        help_text = HELP_STYLE.render("[backspace/esc] Back to resource types  [q] Quit")
        return DOC_STYLE.render(self.list.view()) + "\n" + help_text