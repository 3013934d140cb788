"""The application model: which screen is shown and how keys and loaded data move between them."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from functools import partial
from typing import Any, Optional, TypeVar

from .client import APIError, ClientManager, GroupVersionResource
from .discovery import (
    APIRelationship,
    AvailableResource,
    GenericResource,
    SyncTarget,
    WorkspaceNode,
    discover_api_relationships,
    discover_available_resources,
    discover_resources_in_workspace,
    discover_sync_targets,
    discover_workspaces,
)
from .kubeconfig import KubeconfigError
from .views import (
    APIList,
    AvailableResourceList,
    ContextSelector,
    ResourceInstanceList,
    SyncTargetList,
    WorkspaceList,
)
from .widgets import Command, KeyMsg, Quit, WindowSizeMsg, batch

_FETCH_ERRORS = (APIError, KubeconfigError, OSError)

T = TypeVar("T")


class AppState(Enum):
    CONTEXT_SELECT = auto()
    WORKSPACES = auto()
    APIS = auto()
    SYNC_TARGETS = auto()
    AVAILABLE_RESOURCES = auto()
    RESOURCE_INSTANCES = auto()


@dataclass
class WorkspacesLoaded:
    workspaces: list[WorkspaceNode]


@dataclass
class APIsLoaded:
    apis: list[APIRelationship]


@dataclass
class SyncTargetsLoaded:
    targets: list[SyncTarget]


@dataclass
class AvailableResourcesLoaded:
    resources: list[AvailableResource]


@dataclass
class ResourceInstancesLoaded:
    resources: list[GenericResource]


@dataclass
class ErrorMsg:
    error: Exception


def _fetch(load: Callable[[], T], wrap: Callable[[T], Any]) -> Command:
    def command() -> Any:
        try:
            return wrap(load())
        except _FETCH_ERRORS as exc:
            return ErrorMsg(exc)

    return command


def fetch_workspaces(manager: ClientManager, path: str) -> Command:
    """Command loading the workspaces under a path."""
    return _fetch(lambda: discover_workspaces(manager, path), WorkspacesLoaded)


def fetch_apis(manager: ClientManager, path: str) -> Command:
    """Command loading the API exports and bindings of a workspace."""
    return _fetch(lambda: discover_api_relationships(manager, path), APIsLoaded)


def fetch_sync_targets(manager: ClientManager, path: str) -> Command:
    """Command loading the sync targets of a workspace."""
    return _fetch(lambda: discover_sync_targets(manager, path), SyncTargetsLoaded)


def fetch_available_resources(manager: ClientManager, path: str) -> Command:
    """Command loading the resource types served in a workspace."""
    return _fetch(lambda: discover_available_resources(manager, path), AvailableResourcesLoaded)


def fetch_resource_instances(
    manager: ClientManager, path: str, gvr: GroupVersionResource
) -> Command:
    """Command loading all instances of one resource type in a workspace."""
    return _fetch(
        lambda: discover_resources_in_workspace(manager, path, gvr, ""), ResourceInstancesLoaded
    )


class AppModel:
    """Top-level state of the browser."""

    def __init__(
        self, manager: ClientManager, *, context_selector: ContextSelector | None = None
    ) -> None:
        self.manager = manager
        self.workspace_list = WorkspaceList()
        self.api_list = APIList()
        self.sync_target_list = SyncTargetList()
        self.available_resource_list = AvailableResourceList()
        self.resource_instance_list = ResourceInstanceList()
        self.context_selector = context_selector
        if context_selector is None:
            self.state = AppState.WORKSPACES
            self.loading = True
        else:
            self.state = AppState.CONTEXT_SELECT
            self.loading = False
        self.err: Exception | None = None
        self.history: list[str] = []

    @classmethod
    def with_context_selector(
        cls,
        manager: ClientManager,
        kubeconfig_path: str | None,
        contexts: list[str],
        current_context: str,
    ) -> AppModel:
        """A model that starts by asking which kubeconfig context to use."""
        selector = ContextSelector(kubeconfig_path or "", contexts, current_context)
        return cls(manager, context_selector=selector)

    def _screens(self) -> dict[AppState, Any]:
        return {
            AppState.WORKSPACES: self.workspace_list,
            AppState.APIS: self.api_list,
            AppState.SYNC_TARGETS: self.sync_target_list,
            AppState.AVAILABLE_RESOURCES: self.available_resource_list,
            AppState.RESOURCE_INSTANCES: self.resource_instance_list,
        }

    def init(self) -> Optional[Command]:
        if self.state is AppState.CONTEXT_SELECT and self.context_selector is not None:
            return self.context_selector.init()
        return batch(fetch_workspaces(self.manager, "root"), self.workspace_list.init())

    def update(self, msg: Any) -> Optional[Command]:
        """Handle one message and return the command to run next, if any."""
        commands: list[Optional[Command]] = []

        if isinstance(msg, KeyMsg):
            if msg.key in ("ctrl+c", "q"):
                return Quit
            if self.state is AppState.CONTEXT_SELECT and self.context_selector is not None:
                return self._update_context_selector(msg)
            if not self.loading and self.err is None:
                commands.append(self._handle_key(msg.key))
        elif isinstance(msg, WindowSizeMsg):
            for screen in self._screens().values():
                screen.update(msg)
            if self.context_selector is not None:
                self.context_selector.update(msg)
        elif isinstance(msg, WorkspacesLoaded):
            self._loaded()
            self.workspace_list.set_current_path(self.manager.current_workspace())
            commands.append(self.workspace_list.set_items(msg.workspaces))
        elif isinstance(msg, APIsLoaded):
            self._loaded()
            commands.append(self.api_list.set_items(msg.apis))
        elif isinstance(msg, SyncTargetsLoaded):
            self._loaded()
            commands.append(self.sync_target_list.set_items(msg.targets))
        elif isinstance(msg, AvailableResourcesLoaded):
            self._loaded()
            commands.append(self.available_resource_list.set_items(msg.resources))
        elif isinstance(msg, ResourceInstancesLoaded):
            self._loaded()
            commands.append(self.resource_instance_list.set_items(msg.resources))
        elif isinstance(msg, ErrorMsg):
            self.err = msg.error
            self.loading = False

        if not self.loading and self.err is None:
            commands.append(self._update_current_view(msg))
        return batch(*commands)

    def _loaded(self) -> None:
        self.loading = False
        self.err = None

    def _update_context_selector(self, msg: KeyMsg) -> Optional[Command]:
        assert self.context_selector is not None
        command = self.context_selector.update(msg)
        selected = self.context_selector.selected_context()
        if not selected:
            return command
        try:
            manager = ClientManager.with_context(self.context_selector.kubeconfig_path, selected)
        except (KubeconfigError, OSError) as exc:
            self.err = exc
            self.loading = False
            return batch(command, partial(ErrorMsg, exc))
        self.manager = manager
        self.state = AppState.WORKSPACES
        self.loading = True
        return batch(command, fetch_workspaces(self.manager, "root"))

    def _handle_key(self, key: str) -> Optional[Command]:
        if key == "enter":
            return self._handle_enter()
        if key == "a":
            return self._open_apis()
        if key == "s":
            return self._open_sync_targets()
        if key == "r":
            return self._open_resources()
        if key in ("backspace", "esc"):
            return self._go_back()
        return None

    def _handle_enter(self) -> Optional[Command]:
        if self.state is AppState.WORKSPACES:
            node = self.workspace_list.selected_node()
            if node is not None:
                self.loading = True
                self.history.append(self.manager.current_workspace())
                self.manager.set_workspace(node.path)
                return fetch_workspaces(self.manager, node.path)
        elif self.state is AppState.AVAILABLE_RESOURCES:
            resource = self.available_resource_list.selected_resource()
            if resource is not None:
                self.state = AppState.RESOURCE_INSTANCES
                self.loading = True
                self.resource_instance_list.set_gvr(resource.gvr)
                return fetch_resource_instances(
                    self.manager, self.manager.current_workspace(), resource.gvr
                )
        return None

    def _open_apis(self) -> Optional[Command]:
        if self.state is not AppState.WORKSPACES:
            return None
        self.state = AppState.APIS
        self.loading = True
        workspace = self.manager.current_workspace()
        self.api_list.set_workspace_path(workspace)
        return fetch_apis(self.manager, workspace)

    def _open_sync_targets(self) -> Optional[Command]:
        if self.state is not AppState.WORKSPACES:
            return None
        self.state = AppState.SYNC_TARGETS
        self.loading = True
        return fetch_sync_targets(self.manager, self.manager.current_workspace())

    def _open_resources(self) -> Optional[Command]:
        if self.state is not AppState.WORKSPACES:
            return None
        self.state = AppState.AVAILABLE_RESOURCES
        self.loading = True
        workspace = self.manager.current_workspace()
        self.available_resource_list.title = "Available Resources in " + workspace
        return fetch_available_resources(self.manager, workspace)

    def _go_back(self) -> Optional[Command]:
        if self.state is AppState.APIS:
            if self.api_list.in_detail_view():
                self.api_list.exit_detail_view()
            else:
                self.state = AppState.WORKSPACES
        elif self.state in (AppState.SYNC_TARGETS, AppState.AVAILABLE_RESOURCES):
            self.state = AppState.WORKSPACES
        elif self.state is AppState.RESOURCE_INSTANCES:
            self.state = AppState.AVAILABLE_RESOURCES
        elif self.state is AppState.WORKSPACES and self.history:
            self.loading = True
            previous = self.history.pop()
            self.manager.set_workspace(previous)
            return fetch_workspaces(self.manager, previous)
        return None

    def _update_current_view(self, msg: Any) -> Optional[Command]:
        if self.state is AppState.CONTEXT_SELECT:
            if self.context_selector is None:
                return None
            return self.context_selector.update(msg)
        return self._screens()[self.state].update(msg)

    def view(self) -> str:
        if self.state is AppState.CONTEXT_SELECT and self.context_selector is not None:
            return self.context_selector.view()
        workspace = self.manager.current_workspace()
        if self.err is not None:
            return (
                f"Error in {workspace}: {self.err}\n\n"
                "Press backspace to go back or q to quit."
            )
        if self.loading:
            return f"Loading for {workspace}...\n"
        return self._screens().get(self.state, self.workspace_list).view()