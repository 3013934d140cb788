# kcplens

A terminal browser for kcp workspace hierarchies. It reads your kubeconfig,
connects to the server and lets you walk the workspace tree and look inside
each workspace:

- sub-workspaces, opened with `enter` and left again with `backspace`
- API exports and API bindings (`a`), with the raw object shown as YAML (`y`)
- sync targets (`s`)
- every available resource type (`r`), and the instances of a chosen type (`enter`)

## Installation

```
pip install .
```

## Usage

```
kcplens
kcplens --kubeconfig ~/.kube/kcp-admin.kubeconfig
```

The kubeconfig is looked up in this order: the `--kubeconfig` option (also
accepted as `-kubeconfig`), the `KUBECONFIG` environment variable, then
`~/.kube/config`.

If the kubeconfig holds more than one context, kcplens starts with a context
picker (type `/` to filter, `enter` to choose); otherwise it opens the root
workspace of the current context directly. Whatever workspace path the server
URL points at, browsing always begins at `root`.

Credentials are taken from the kubeconfig entry of the chosen context: a bearer
token or token file, a user name and password, client certificates and keys
(as files or inline data), a certificate authority, and
`insecure-skip-tls-verify`.

### Keys

| Key                    | Action                                              |
|------------------------|-----------------------------------------------------|
| `enter`                | open the selected workspace or resource type        |
| `a`                    | list API exports and bindings in this workspace     |
| `s`                    | list sync targets in this workspace                 |
| `r`                    | list available resource types in this workspace     |
| `y`                    | show the selected API relationship as YAML          |
| `backspace`            | go back                                             |
| `up`/`k`, `down`/`j`   | move the selection                                  |
| `left`/`right`, `pgup`/`pgdown` | change page                                |
| `home`/`g`, `end`/`G`  | jump to the first or last entry                     |
| `/`                    | filter the list (not in the workspace list)         |
| `q` / `ctrl+c`         | quit                                                |

`esc` clears a filter that is being typed or has been applied; anywhere else a
list treats it like `q`.

## Library use

The pieces behind the browser can be used on their own:

- `kcplens.kubeconfig` — `get_contexts`, `build_config_from_context`,
  `load_rest_config` turn a kubeconfig into a `RestConfig`.
- `kcplens.client` — `ClientManager.from_kubeconfig` / `ClientManager.with_context`
  connect, and `switch_workspace` points requests at a workspace path.
- `kcplens.discovery` — `discover_workspaces`, `discover_api_relationships`,
  `discover_sync_targets`, `discover_available_resources`,
  `discover_resources_in_workspace` and `discover_wildcard_resources` return
  plain dataclasses.

## What it does not do

kcplens only reads. It cannot create, edit or delete objects, does not watch
for changes (a screen shows what was loaded when it was opened), and does not
run kubeconfig `exec` or auth-provider credential plugins.

## Development

```
pip install -e ".[test]"
pytest
```