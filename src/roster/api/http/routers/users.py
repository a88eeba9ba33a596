"""User roster API router: listing, lookup, create, update and (de)activation."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.roster.api.http.deps import get_user_service
from src.roster.core.exceptions import UserNotFoundError
from src.roster.core.models import UserPage
from src.roster.core.services import UserService
from src.roster.entities.user import User, UserCreate, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


def parse_active_filter(value: str | None) -> bool | None:
    """Map the ``isActive`` query string to a tri-state filter.

    Only the literal strings ``"true"`` and ``"false"`` select a state; any
    other value leaves the filter unset.
    """
    if value == "true":
        return True
    if value == "false":
        return False
    return None


def _not_found(exc: UserNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("", response_model=UserPage, response_model_exclude_unset=True)
def list_users(
    page: int = Query(1, description="1-based page number"),
    limit: int | None = Query(None, ge=1, description="Page size"),
    search: str | None = Query(None, description="Name, username, email or phone"),
    is_active: str | None = Query(None, alias="isActive"),
    service: UserService = Depends(get_user_service),
) -> UserPage:
    """List users, filtered and paginated."""
    return service.get_users(
        page=page,
        limit=limit,
        search=search,
        is_active=parse_active_filter(is_active),
    )


@router.get("/{user_id}", response_model=User, response_model_exclude_unset=True)
def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> User:
    """Get a user by ID."""
    try:
        return service.get_user_by_id(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e


@router.post(
    "",
    response_model=User,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
) -> User:
    """Create a new user."""
    return service.create_user(payload)


@router.put("/{user_id}", response_model=User, response_model_exclude_unset=True)
def update_user(
    user_id: str,
    payload: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> User:
    """Apply a partial update to a user."""
    try:
        return service.update_user(user_id, payload)
    except UserNotFoundError as e:
        raise _not_found(e) from e


@router.patch(
    "/{user_id}/deactivate", response_model=User, response_model_exclude_unset=True
)
def deactivate_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> User:
    """Soft-delete a user."""
    try:
        return service.deactivate_user(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e


@router.patch("/{user_id}/activate", response_model=User, response_model_exclude_unset=True)
def activate_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> User:
    """Reactivate a user."""
    try:
        return service.activate_user(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
