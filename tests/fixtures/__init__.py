"""Shared pytest fixtures and helpers for roster tests."""

from .core import *  # noqa: F401,F403
