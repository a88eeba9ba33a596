"""Entities module, organized by business concept.

Each entity has its own package holding the domain model and the payload
models used to create and change it.
"""

from ._base import RecordId
from .user import User, UserCreate, UserUpdate

__all__ = [
    "RecordId",
    "User",
    "UserCreate",
    "UserUpdate",
]
