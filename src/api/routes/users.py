"""User API routes.

Endpoints:
- POST /users: Create a user
- GET /users: List all users
- GET /users/search: Search users by name or email substring
- GET /users/{id}: Get one user
- PUT /users/{id}: Partially update a user
- DELETE /users/{id}: Delete a user

Handlers are plain functions, so FastAPI runs each request in its threadpool.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.dependencies import get_user_repo
from api.models import CreateUserRequest, MessageResponse, UpdateUserRequest, UserResponse
from domain.model.errors import (
    ConflictError,
    DomainError,
    NoResultsError,
    NotFoundError,
    ValidationError,
)
from domain.model.user import ResponseUser, User
from port.user_repository import UserRepository
from services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _to_response(user: User | ResponseUser) -> UserResponse:
    """Convert a domain user to the password-free API response."""
    return UserResponse(id=user.id, name=user.name, email=user.email)


def _to_http_exception(error: DomainError) -> HTTPException:
    """Map a service error to the status code the client sees."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(request: CreateUserRequest, repo: UserRepository = Depends(get_user_repo)):
    """Create a new user.

    Raises:
        HTTPException: 400 if a field is missing, 409 if the email is taken
    """
    try:
        user = user_service.create_user(
            repo,
            name=request.name,
            email=request.email,
            password=request.password,
        )
    except DomainError as e:
        raise _to_http_exception(e)

    return _to_response(user)


@router.get("", response_model=list[UserResponse])
def get_all_users(repo: UserRepository = Depends(get_user_repo)):
    """List every user in store order."""
    try:
        users = user_service.get_all_users(repo)
    except DomainError as e:
        raise _to_http_exception(e)

    logger.info("Users retrieved", extra={"count": len(users)})
    return [_to_response(user) for user in users]


@router.get(
    "/search",
    response_model=list[UserResponse],
    responses={204: {"description": "No users matched"}},
)
def search_users(
    name: str = "",
    email: str = "",
    repo: UserRepository = Depends(get_user_repo),
):
    """Search users by case-insensitive name or email substring.

    Returns 204 with an empty body when nothing matches.
    """
    if not name and not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one query parameter (name or email) is required",
        )

    try:
        users = user_service.search_users_by_name_or_email(repo, name, email)
    except NoResultsError:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainError as e:
        raise _to_http_exception(e)

    return [_to_response(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Get one user by ID."""
    try:
        user = user_service.get_user_by_id(repo, user_id)
    except NotFoundError:
        logger.warning("User not found", extra={"userId": user_id})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except DomainError as e:
        raise _to_http_exception(e)

    return _to_response(user)


@router.put("/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: str,
    request: UpdateUserRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    """Update name, email and/or password of a user."""
    try:
        user_service.update_user(
            repo,
            user_id,
            name=request.name,
            email=request.email,
            password=request.password,
        )
    except DomainError as e:
        raise _to_http_exception(e)

    return MessageResponse(message="User updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Delete a user."""
    try:
        user_service.delete_user(repo, user_id)
    except DomainError as e:
        raise _to_http_exception(e)

    return MessageResponse(message="User deleted successfully")
