"""Roster administration service.

This package contains the user-roster backend: a JSON-file record store,
the listing/mutation service built on top of it, the HTTP API and the
runtime configuration shared by the API and the CLI.
"""

__version__ = "0.1.0"
