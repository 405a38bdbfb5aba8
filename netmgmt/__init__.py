"""Activity events and stores, encrypted SQLite event log, peer update channels, bypass paths, WSGI middleware and JWT validation."""

__version__ = "0.1.0"