"""Core services exports."""

from .user.user_service import UserService

__all__ = [
    "UserService",
]
