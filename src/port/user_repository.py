from typing import Protocol
from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Implementations raise NotFoundError for missing ids, StorageError
    (or DeserializationError) when the backend fails.
    """
    def create(self, user: User) -> None:
        """Write the user at key user.id. Overwrites an existing record."""
        ...

    def create_if_email_unique(self, user: User) -> None:
        """Write the user unless another record has the same email.

        The check and the write happen in one write transaction.
        Raise ConflictError on a duplicate email.
        """
        ...

    def get_by_id(self, user_id: str) -> User:
        """Find a user by ID. Raise NotFoundError if absent."""
        ...

    def get_all(self) -> list[User]:
        """Return every decodable user in key order."""
        ...

    def update(self, user: User) -> None:
        """Overwrite the record at key user.id."""
        ...

    def update_if_email_unique(self, user: User) -> None:
        """Overwrite an existing record unless another user has the same email.

        Raise NotFoundError if the id is gone, ConflictError on a duplicate.
        Checks and write happen in one write transaction.
        """
        ...

    def delete(self, user_id: str) -> None:
        """Delete a user by ID. Raise NotFoundError if absent."""
        ...

    def check_email_exists(self, email: str, exclude_id: str | None = None) -> bool:
        """Return True if a user (other than exclude_id) has exactly this email."""
        ...
