"""User service: business rules for creating, updating and searching users.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import logging
import os
import uuid

import bcrypt

from domain.model.errors import (
    ConflictError,
    InternalError,
    NoResultsError,
    StorageError,
    ValidationError,
)
from domain.model.user import ResponseUser, User
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash in constant time."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def _validate_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def _validate_new_user(name: str, email: str, password: str) -> None:
    if not name:
        raise ValidationError("Name is required")
    if not email:
        raise ValidationError("Email is required")
    if not password:
        raise ValidationError("Password is required")
    _validate_password_length(password)


def create_user(repo: UserRepository, name: str, email: str, password: str) -> User:
    """Create a user with a fresh id and a hashed password.

    Returns the stored User domain object.

    Raises:
        ValidationError: a required field is empty or the password is too long
        ConflictError: email already used by another user
        InternalError: the store failed
    """
    try:
        _validate_new_user(name, email, password)
    except ValidationError as e:
        logger.warning("Validation failed", extra={"error": str(e)})
        raise

    user = User(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        password_hash=_hash_password(password),
    )

    try:
        repo.create_if_email_unique(user)
    except ConflictError:
        logger.warning("User with this email already exists", extra={"email": email})
        raise
    except StorageError as e:
        logger.error("Failed to create user", extra={"email": email, "error": str(e)})
        raise InternalError("Failed to create user") from e

    logger.info("User created", extra={"userId": user.id})
    return user


def get_user_by_id(repo: UserRepository, user_id: str) -> User:
    """Load one user.

    Raises:
        NotFoundError: no user has this id
        InternalError: the store failed or the record is corrupt
    """
    try:
        return repo.get_by_id(user_id)
    except StorageError as e:
        logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
        raise InternalError("Failed to get user") from e


def get_all_users(repo: UserRepository) -> list[User]:
    try:
        users = repo.get_all()
    except StorageError as e:
        logger.error("Failed to get all users", extra={"error": str(e)})
        raise InternalError("Failed to fetch users") from e
    return users


def update_user(
    repo: UserRepository,
    user_id: str,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> User:
    """Apply a partial update to an existing user.

    Fields left as None keep their stored value; fields that are given
    (including empty strings) replace it. A non-empty password is re-hashed.

    Raises:
        NotFoundError: no user has this id
        ConflictError: the new email belongs to another user
        ValidationError: the new password is too long
        InternalError: the store failed
    """
    user = get_user_by_id(repo, user_id)

    if name is not None:
        user.name = name

    email_changed = email is not None and email != user.email
    if email_changed:
        user.email = email

    if password:
        _validate_password_length(password)
        user.password_hash = _hash_password(password)

    try:
        if email_changed:
            repo.update_if_email_unique(user)
        else:
            repo.update(user)
    except ConflictError:
        logger.warning("Another user with this email already exists", extra={"email": email})
        raise
    except StorageError as e:
        logger.error("Failed to update user", extra={"userId": user_id, "error": str(e)})
        raise InternalError("Failed to update user") from e

    logger.info("User updated", extra={"userId": user_id})
    return user


def delete_user(repo: UserRepository, user_id: str) -> None:
    """Delete a user.

    Raises:
        NotFoundError: no user has this id
        InternalError: the store failed
    """
    try:
        repo.delete(user_id)
    except StorageError as e:
        logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
        raise InternalError("Failed to delete user") from e

    logger.info("User deleted", extra={"userId": user_id})


def search_users_by_name_or_email(
    repo: UserRepository, name_query: str, email_query: str
) -> list[ResponseUser]:
    """Case-insensitive substring search over names and emails.

    A user matches when name_query is non-empty and occurs in the name, or
    email_query is non-empty and occurs in the email. Results keep store order.

    Raises:
        ValidationError: both queries are empty
        NoResultsError: nothing matched
        InternalError: the store failed
    """
    if not name_query and not email_query:
        raise ValidationError("At least one query parameter (name or email) is required")

    name_needle = name_query.lower()
    email_needle = email_query.lower()

    results = []
    for user in get_all_users(repo):
        name_matches = bool(name_needle) and name_needle in user.name.lower()
        email_matches = bool(email_needle) and email_needle in user.email.lower()
        if name_matches or email_matches:
            results.append(ResponseUser.from_user(user))

    if not results:
        logger.info("No users found for the provided search criteria", extra={
            "name_query": name_query,
            "email_query": email_query,
        })
        raise NoResultsError("No users found")

    logger.info("Users found matching the criteria", extra={"count": len(results)})
    return results
