import contextlib
import io
import json

import pytest
import responses

from kcplens.app import AppModel, AppState
from kcplens.cli import build_model, main, run
from kcplens.client import ClientManager
from kcplens.kubeconfig import KubeconfigError, RestConfig

BASE = "https://kcp.example.com"


@pytest.fixture
def api():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def _kubeconfig(tmp_path, contexts, current):
    data = {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [
            {"name": "alpha", "cluster": {"server": "https://alpha.example.com"}},
            {"name": "beta", "cluster": {"server": "https://beta.example.com/clusters/root:x"}},
        ],
        "users": [{"name": "admin", "user": {"token": "token"}}],
        "contexts": [
            {"name": name, "context": {"cluster": cluster, "user": "admin"}}
            for name, cluster in contexts
        ],
        "current-context": current,
    }
    path = tmp_path / "config"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class FakeTerminal:
    def __init__(self, keys, width=80, height=24):
        self.keys = list(keys)
        self.width = width
        self.height = height
        self.stream = io.StringIO()
        self.home = ""
        self.clear = ""

    def fullscreen(self):
        return contextlib.nullcontext()

    def raw(self):
        return contextlib.nullcontext()

    def hidden_cursor(self):
        return contextlib.nullcontext()

    def inkey(self, timeout=None):
        return self.keys.pop(0) if self.keys else "q"


def test_build_model_single_context(tmp_path):
    path = _kubeconfig(tmp_path, [("alpha", "alpha")], "alpha")
    model = build_model(path)
    assert model.state is AppState.WORKSPACES
    assert model.loading is True
    assert model.manager.base_host() == "https://alpha.example.com"


def test_build_model_several_contexts_uses_selector(tmp_path):
    path = _kubeconfig(tmp_path, [("alpha", "alpha"), ("beta", "beta")], "beta")
    model = build_model(path)
    assert model.state is AppState.CONTEXT_SELECT
    assert model.context_selector.contexts == ["alpha", "beta"]
    assert model.context_selector.current_context == "beta"
    assert model.manager.base_host() == "https://beta.example.com"


def test_build_model_missing_file(tmp_path):
    with pytest.raises(KubeconfigError, match="Failed to load kubeconfig contexts"):
        build_model(str(tmp_path / "absent"))


def test_build_model_broken_context(tmp_path):
    path = _kubeconfig(tmp_path, [("broken", "missing")], "broken")
    with pytest.raises(KubeconfigError, match="Failed to initialize KCP client"):
        build_model(path)


@pytest.mark.parametrize("flag", ["--kubeconfig", "-kubeconfig"])
def test_main_reports_missing_kubeconfig(tmp_path, capsys, flag):
    assert main([flag, str(tmp_path / "absent")]) == 1
    assert "Failed to load kubeconfig contexts" in capsys.readouterr().out


def test_main_reports_client_failure(tmp_path, capsys):
    path = _kubeconfig(tmp_path, [("broken", "missing")], "broken")
    assert main(["--kubeconfig", path]) == 1
    assert "Failed to initialize KCP client" in capsys.readouterr().out


def test_run_loads_and_navigates(api):
    api.add(
        responses.GET,
        f"{BASE}/clusters/root/apis/tenancy.kcp.io/v1alpha1/workspaces",
        json={"items": [{"metadata": {"name": "team-a"}}, {"metadata": {"name": "team-b"}}]},
    )
    model = AppModel(ClientManager(RestConfig(host=BASE)))
    terminal = FakeTerminal(["j", "q"])
    run(model, terminal)
    output = terminal.stream.getvalue()
    assert "Loading for root..." in output
    assert "team-b" in output
    assert model.workspace_list.selected_node().name == "team-b"
    assert terminal.keys == []


def test_run_stops_on_ctrl_c(tmp_path):
    path = _kubeconfig(tmp_path, [("alpha", "alpha"), ("beta", "beta")], "alpha")
    model = build_model(path)
    terminal = FakeTerminal(["\x03", "x"])
    run(model, terminal)
    assert terminal.keys == ["x"]
    assert "Select a kubeconfig context" in terminal.stream.getvalue()
    assert model.state is AppState.CONTEXT_SELECT