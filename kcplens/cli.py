"""Command-line entry point: pick a kubeconfig, connect and run the terminal browser."""

from __future__ import annotations

import argparse
import sys
from collections import deque
from typing import Any, Optional

from .app import AppModel
from .client import ClientManager
from .kubeconfig import KubeconfigError, get_contexts
from .widgets import Command, KeyMsg, Quit, WindowSizeMsg

_KEYS = {
    "\x03": "ctrl+c", "\r": "enter", "\n": "enter", "\x7f": "backspace", "\x08": "backspace",
    "\x1b": "esc", "\t": "tab",
    "KEY_ENTER": "enter", "KEY_UP": "up", "KEY_DOWN": "down", "KEY_LEFT": "left",
    "KEY_RIGHT": "right", "KEY_BACKSPACE": "backspace", "KEY_DELETE": "backspace",
    "KEY_ESCAPE": "esc", "KEY_PGUP": "pgup", "KEY_PGDOWN": "pgdown", "KEY_HOME": "home",
    "KEY_END": "end", "KEY_TAB": "tab",
}


class _StartupError(KubeconfigError):
    """Startup failed; the message is ready to show to the user."""


def build_model(kubeconfig_path: str | None) -> AppModel:
    """Connect with the kubeconfig and build the model to start from."""
    try:
        contexts, current = get_contexts(kubeconfig_path)
    except KubeconfigError as exc:
        raise _StartupError(f"Failed to load kubeconfig contexts: {exc}") from exc
    try:
        if len(contexts) > 1:
            manager = ClientManager.with_context(kubeconfig_path, current)
            return AppModel.with_context_selector(manager, kubeconfig_path, contexts, current)
        return AppModel(ClientManager.from_kubeconfig(kubeconfig_path))
    except (KubeconfigError, OSError) as exc:
        raise _StartupError(f"Failed to initialize KCP client: {exc}") from exc


def _key_name(keystroke: Any) -> Optional[str]:
    text = str(keystroke) if keystroke else ""
    if text in _KEYS:
        return _KEYS[text]
    if getattr(keystroke, "is_sequence", False):
        return _KEYS.get(getattr(keystroke, "name", None) or "")
    return text if len(text) == 1 and text.isprintable() else None


def run(model: AppModel, terminal: Any) -> None:
    """Drive the model from a blessed terminal until it asks to quit."""
    pending: deque[Command] = deque()

    def dispatch(msg: Any) -> bool:
        if isinstance(msg, Quit):
            return False
        if isinstance(msg, tuple):
            pending.extend(msg)
        elif msg is not None:
            command = model.update(msg)
            if command is not None:
                pending.append(command)
        return True

    start = model.init()
    if start is not None:
        pending.append(start)

    with terminal.fullscreen(), terminal.raw(), terminal.hidden_cursor():
        size: tuple[int, int] | None = None
        shown: str | None = None
        while True:
            if (terminal.width, terminal.height) != size:
                size = (terminal.width, terminal.height)
                shown = None
                if not dispatch(WindowSizeMsg(*size)):
                    return
            view = model.view()
            if view != shown:
                terminal.stream.write(terminal.home + terminal.clear + view.replace("\n", "\r\n"))
                terminal.stream.flush()
                shown = view
            if pending:
                if not dispatch(pending.popleft()()):
                    return
                continue
            name = _key_name(terminal.inkey(timeout=0.2))
            if name is not None and not dispatch(KeyMsg(name)):
                return


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="kcplens", description="Browse kcp workspaces.")
    parser.add_argument("-kubeconfig", "--kubeconfig", default="", help="path to the kubeconfig file")
    args = parser.parse_args(argv)

    try:
        model = build_model(args.kubeconfig)
    except _StartupError as exc:
        print(exc)
        return 1

    import blessed

    try:
        run(model, blessed.Terminal())
    except OSError as exc:
        print(f"Alas, there's been an error starting the TUI: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())