"""In-memory implementation of UserRepository for testing."""

from dataclasses import replace
from domain.model.errors import ConflictError, NotFoundError
from domain.model.user import User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    # ── write operations ─────────────────────────────────────

    def create(self, user: User) -> None:
        self.store[user.id] = replace(user)

    def create_if_email_unique(self, user: User) -> None:
        if self.check_email_exists(user.email):
            raise ConflictError("User with this email already exists")
        self.create(user)

    def update(self, user: User) -> None:
        self.store[user.id] = replace(user)

    def update_if_email_unique(self, user: User) -> None:
        if user.id not in self.store:
            raise NotFoundError(f"User {user.id} not found")
        if self.check_email_exists(user.email, exclude_id=user.id):
            raise ConflictError("Another user with this email already exists")
        self.update(user)

    def delete(self, user_id: str) -> None:
        if user_id not in self.store:
            raise NotFoundError(f"User {user_id} not found")
        del self.store[user_id]

    # ── read operations ──────────────────────────────────────

    def get_by_id(self, user_id: str) -> User:
        user = self.store.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return replace(user)

    def get_all(self) -> list[User]:
        return [replace(self.store[key]) for key in sorted(self.store)]

    def check_email_exists(self, email: str, exclude_id: str | None = None) -> bool:
        return any(
            u.email == email and u.id != exclude_id
            for u in self.store.values()
        )
