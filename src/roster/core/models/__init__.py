"""Listing and pagination models."""

from .pagination import PageMetadata, UserPage, UserQuery

__all__ = ["PageMetadata", "UserPage", "UserQuery"]
