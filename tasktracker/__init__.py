"""Multi-user task tracker: REST API plus a single-page UI."""

__version__ = "1.0.0"
