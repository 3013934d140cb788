import yaml

from kcplens.client import GroupVersionResource
from kcplens.discovery import (
    APIRelationship,
    AvailableResource,
    GenericResource,
    SyncTarget,
    WorkspaceNode,
)
from kcplens.views import (
    APIItem,
    APIList,
    APIListState,
    AvailableResourceItem,
    AvailableResourceList,
    ContextItem,
    ContextSelector,
    ResourceInstanceList,
    ResourceListItem,
    SyncTargetItem,
    SyncTargetList,
    WorkspaceItem,
    WorkspaceList,
)
from kcplens.widgets import KeyMsg, Quit, WindowSizeMsg


def _nodes():
    return [WorkspaceNode("team", "root:team"), WorkspaceNode("ops", "root:ops")]


def test_workspace_item_fields():
    node = WorkspaceNode("team", "root:team")
    item = WorkspaceItem(node)
    assert item.title == "team"
    assert item.description == "Path: root:team"
    assert item.filter_value == "team root:team"


def test_workspace_list_selection_moves_with_keys():
    nodes = _nodes()
    ws = WorkspaceList()
    ws.set_items(nodes)
    assert ws.selected_node() is nodes[0]
    assert ws.update(KeyMsg("down")) is None
    assert ws.selected_node() is nodes[1]


def test_workspace_list_empty_has_no_selection():
    ws = WorkspaceList()
    ws.set_items([])
    assert ws.selected_node() is None
    assert ws.has_sub_workspaces is False


def test_workspace_list_empty_view():
    ws = WorkspaceList()
    ws.set_current_path("root:team")
    text = ws.view()
    assert "No sub-workspaces. Use the commands below to explore this workspace." in text
    assert "Workspace: root:team" in text
    assert "Current: root:team" in text
    assert "[enter] Navigate" not in text


def test_workspace_list_view_with_items():
    ws = WorkspaceList()
    ws.set_items(_nodes())
    text = ws.view()
    assert "[enter] Navigate" in text
    assert "team" in text
    assert "No sub-workspaces" not in text


def test_workspace_list_ctrl_c_quits():
    ws = WorkspaceList()
    assert ws.update(KeyMsg("ctrl+c")) is Quit


def test_workspace_list_window_size():
    ws = WorkspaceList()
    ws.update(WindowSizeMsg(80, 30))
    assert ws.list.width == 76
    assert ws.list.height < 30


def test_sync_target_item_and_list():
    target = SyncTarget("east", "Ready", {"region": "east"})
    item = SyncTargetItem(target)
    assert item.title == "east"
    assert item.description == "Status: Ready"
    assert item.filter_value == "east"

    targets = SyncTargetList()
    targets.set_items([target])
    text = targets.view()
    assert "Sync Targets (Physical Clusters)" in text
    assert "east" in text
    assert "[backspace/esc] Back  [q] Quit" in text


def test_context_item():
    item = ContextItem("dev")
    assert item.title == "dev"
    assert item.filter_value == "dev"
    assert item.description == "Context"


def test_context_selector_enter_selects_current_item():
    selector = ContextSelector("/tmp/config", ["dev", "prod"], "dev")
    assert selector.selected_context() == ""
    selector.update(KeyMsg("down"))
    assert selector.update(KeyMsg("enter")) is None
    assert selector.selected_context() == "prod"
    assert selector.kubeconfig_path == "/tmp/config"


def test_context_selector_quit_keys():
    selector = ContextSelector("", ["dev"], "dev")
    assert selector.update(KeyMsg("q")) is Quit
    assert selector.update(KeyMsg("ctrl+c")) is Quit


def test_context_selector_typing_while_filtering_does_not_quit():
    selector = ContextSelector("", ["dev", "prod"], "dev")
    selector.update(KeyMsg("/"))
    assert selector.update(KeyMsg("q")) is None
    assert selector.list.filter_text == "q"
    assert selector.selected_context() == ""


def test_context_selector_view_shows_current_context():
    selector = ContextSelector("", ["dev", "prod"], "prod")
    text = selector.view()
    assert "Current context: prod | [enter] Select  [q] Quit" in text
    assert "Select a kubeconfig context" in text


def test_api_item_binding():
    rel = APIRelationship("b1", "Binding", "Ready", export_name="widgets", export_path="root:org")
    item = APIItem(rel)
    assert item.title == "Binding: widgets"
    assert item.description == "from: root:org | status: Ready"
    assert item.filter_value == "b1 Binding widgets "


def test_api_item_binding_without_export():
    item = APIItem(APIRelationship("b1", "Binding", "Unknown"))
    assert item.title == "b1"
    assert "from: unknown" in item.description


def test_api_item_export_and_other():
    export = APIItem(
        APIRelationship("e1", "Export", "Ready", resource_name="widgets", resource_group="acme.io")
    )
    assert export.title == "Export: acme.io/widgets"
    assert export.description == "provides API to consumers | status: Ready"
    other = APIItem(APIRelationship("x", "Other", "Ready"))
    assert other.title == "x"
    assert other.description == "status: Ready"


def test_api_list_yaml_detail_round_trip():
    raw = {"kind": "APIExport", "metadata": {"name": "e1"}, "spec": {"resources": [1, 2]}}
    apis = APIList()
    apis.set_items([APIRelationship("e1", "Export", "Ready", raw=raw)])
    assert apis.update(KeyMsg("y")) is None
    assert apis.in_detail_view()
    assert apis.state is APIListState.DETAIL
    assert yaml.safe_load(apis.viewport.view()) == raw
    assert "YAML (press backspace/esc to go back)" in apis.view()
    apis.exit_detail_view()
    assert not apis.in_detail_view()
    assert "[y] Show YAML" in apis.view()


def test_api_list_yaml_without_items_stays_in_list():
    apis = APIList()
    apis.update(KeyMsg("y"))
    assert apis.state is APIListState.LIST
    assert apis.selected_relationship() is None


def test_api_list_selected_relationship_and_title():
    rel = APIRelationship("e1", "Export", "Ready")
    apis = APIList()
    apis.set_items([rel])
    apis.set_workspace_path("root:org")
    assert apis.selected_relationship() == rel
    assert apis.list.title == "API Relationships in root:org"


def test_api_list_window_size_marks_ready():
    apis = APIList()
    apis.update(WindowSizeMsg(100, 40))
    assert apis.ready is True
    assert apis.viewport.height < apis.list.height


def test_available_resource_item_core_group():
    res = AvailableResource(GroupVersionResource("", "v1", "pods"), "Pod", True)
    item = AvailableResourceItem(res)
    assert item.title == "Pod (pods.core)"
    assert item.description == "GVR: v1/pods | namespaced"
    assert item.filter_value == "Pod pods "


def test_available_resource_item_named_group():
    res = AvailableResource(GroupVersionResource("apps", "v1", "deployments"), "Deployment", False)
    item = AvailableResourceItem(res)
    assert item.title == "Deployment (deployments.apps)"
    assert item.description.endswith("cluster-scoped")
    assert "apps/v1/deployments" in item.description


def test_available_resource_list_selection_and_title():
    pods = AvailableResource(GroupVersionResource("", "v1", "pods"), "Pod", True)
    listing = AvailableResourceList()
    assert listing.selected_resource() is None
    listing.set_items([pods])
    assert listing.selected_resource() == pods
    assert listing.title == "Available Resources"
    listing.title = "Available Resources in root"
    assert listing.title == "Available Resources in root"
    assert "[enter] List instances" in listing.view()


def test_resource_list_item():
    item = ResourceListItem(GenericResource("cm1", "", "ConfigMap", "root"))
    assert item.title == "cm1"
    assert item.description == "Namespace: - | Workspace: root"
    named = ResourceListItem(GenericResource("cm1", "default", "ConfigMap", "root"))
    assert "Namespace: default" in named.description
    assert named.filter_value == "cm1 default"


def test_resource_instance_list_set_gvr_and_view():
    gvr = GroupVersionResource("", "v1", "pods")
    instances = ResourceInstanceList()
    instances.set_gvr(gvr)
    assert instances.gvr == gvr
    assert instances.list.title == "pods (pods.core)"
    instances.set_items([GenericResource("p1", "default", "Pod", "root")])
    text = instances.view()
    assert "p1" in text
    assert "[backspace/esc] Back to resource types  [q] Quit" in text


def test_resource_instance_list_window_size_shrinks_list():
    instances = ResourceInstanceList()
    instances.update(WindowSizeMsg(60, 20))
    assert instances.list.width < 60
    assert instances.list.height < 20