"""User entity module.

- User: the stored roster record
- UserCreate / UserUpdate: request payloads validated at the API boundary
"""

from .entity import User, UserCreate, UserUpdate, derive_username

__all__ = ["User", "UserCreate", "UserUpdate", "derive_username"]
