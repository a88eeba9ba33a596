"""Test configuration for the roster service.

The environment is prepared before any ``src.roster`` import so the
configuration loaded at import time never touches real files.
"""

import os

os.environ["APP_ENVIRONMENT"] = "test"
os.environ["LOG_FILE"] = ""
os.environ["ROSTER_WARNINGS_LOG"] = ""
os.environ["ROSTER_DB_PATH"] = ":memory:"

from tests.fixtures import *  # noqa: E402,F401,F403
