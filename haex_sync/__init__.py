"""haex-sync-server — blind relay and ordering authority for encrypted CRDT change logs."""

__version__ = "0.1.0"
APP_NAME = "haex-sync-server"
