"""Terminal browser for kcp workspaces and the APIs and resources inside them."""

__version__ = "0.1.0"