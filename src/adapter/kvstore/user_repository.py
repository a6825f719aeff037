"""Key-value store implementation of UserRepository.

One record per user: key = user id, value = JSON object with the fields
id, name, email and password (the bcrypt hash).
"""

import json
from logging import getLogger
from adapter.kvstore.store import KeyNotFoundError, KeyValueStore, StoreError, Transaction
from domain.model.errors import ConflictError, DeserializationError, NotFoundError, StorageError
from domain.model.user import User

logger = getLogger(__name__)


def _to_record(user: User) -> str:
    """Serialize a User to its stored JSON value."""
    return json.dumps({
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'password': user.password_hash,
    })


def _to_domain(value: str) -> User:
    """Convert a stored JSON value to a User domain model.

    id, name and email must be strings; password, when present, too.
    """
    try:
        doc = json.loads(value)
        fields = {key: doc[key] for key in ('id', 'name', 'email')}
        fields['password_hash'] = doc.get('password', '')
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise DeserializationError(f"Invalid user record: {e}") from e

    for field, field_value in fields.items():
        if not isinstance(field_value, str):
            raise DeserializationError(
                f"Invalid user record: {field} is {type(field_value).__name__}, expected str"
            )
    return User(**fields)


def _iter_users(tx: Transaction):
    """Yield decodable users in key order, skipping corrupt values."""
    for key, value in tx.ascend():
        try:
            yield _to_domain(value)
        except DeserializationError as e:
            logger.warning("Skipping corrupt user record", extra={"key": key, "error": str(e)})


class KVStoreUserRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> None:
        """Write the user at key user.id, overwriting any existing record."""
        self._put(user)
        logger.debug("User record written", extra={"userId": user.id})

    def create_if_email_unique(self, user: User) -> None:
        """Check email uniqueness and write the user in one write transaction."""
        try:
            with self.store.update() as tx:
                if any(existing.email == user.email for existing in _iter_users(tx)):
                    raise ConflictError("User with this email already exists")
                tx.set(user.id, _to_record(user))
        except StoreError as e:
            logger.error("Failed to create user", extra={"userId": user.id, "error": str(e)})
            raise StorageError("Failed to create user") from e
        logger.debug("User record written", extra={"userId": user.id})

    def update(self, user: User) -> None:
        """Overwrite the record at key user.id."""
        self._put(user)
        logger.debug("User record updated", extra={"userId": user.id})

    def update_if_email_unique(self, user: User) -> None:
        """Overwrite an existing record unless another user has its email.

        Existence check, email check and write share one write transaction.
        """
        try:
            with self.store.update() as tx:
                tx.get(user.id)
                if any(
                    existing.email == user.email and existing.id != user.id
                    for existing in _iter_users(tx)
                ):
                    raise ConflictError("Another user with this email already exists")
                tx.set(user.id, _to_record(user))
        except KeyNotFoundError as e:
            raise NotFoundError(f"User {user.id} not found") from e
        except StoreError as e:
            logger.error("Failed to update user", extra={"userId": user.id, "error": str(e)})
            raise StorageError("Failed to update user") from e
        logger.debug("User record updated", extra={"userId": user.id})

    def delete(self, user_id: str) -> None:
        """Delete a user by ID. Raise NotFoundError if absent."""
        try:
            with self.store.update() as tx:
                tx.delete(user_id)
        except KeyNotFoundError as e:
            raise NotFoundError(f"User {user_id} not found") from e
        except StoreError as e:
            logger.error("Failed to delete user", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to delete user") from e

    def _put(self, user: User) -> None:
        value = _to_record(user)
        try:
            with self.store.update() as tx:
                tx.set(user.id, value)
        except StoreError as e:
            logger.error("Failed to write user", extra={"userId": user.id, "error": str(e)})
            raise StorageError("Failed to write user") from e

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User:
        """Find a user by ID. Raise NotFoundError if absent."""
        try:
            with self.store.view() as tx:
                value = tx.get(user_id)
        except KeyNotFoundError as e:
            raise NotFoundError(f"User {user_id} not found") from e
        except StoreError as e:
            logger.error("Failed to get user by ID", extra={"userId": user_id, "error": str(e)})
            raise StorageError("Failed to get user") from e
        return _to_domain(value)

    def get_all(self) -> list[User]:
        """Return every decodable user in key order."""
        try:
            with self.store.view() as tx:
                return list(_iter_users(tx))
        except StoreError as e:
            logger.error("Failed to list users", extra={"error": str(e)})
            raise StorageError("Failed to list users") from e

    def check_email_exists(self, email: str, exclude_id: str | None = None) -> bool:
        """Scan all users for an exact email match, stopping at the first hit."""
        try:
            with self.store.view() as tx:
                return any(
                    user.email == email and user.id != exclude_id
                    for user in _iter_users(tx)
                )
        except StoreError as e:
            logger.error("Failed to check email existence", extra={"email": email, "error": str(e)})
            raise StorageError("Failed to check email") from e
