"""FastAPI dependencies resolving the application-wide services."""

from __future__ import annotations

from fastapi import Request

from src.roster.api.http.app_data import ApplicationDependencies
from src.roster.core.services import UserService
from src.roster.core.storage import RecordStore


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_record_store(request: Request) -> RecordStore:
    return get_app_dependencies(request).record_store


def get_user_service(request: Request) -> UserService:
    return get_app_dependencies(request).user_service
