from dataclasses import dataclass


@dataclass
class User:
    """Domain model representing a user.

    ``password_hash`` is the bcrypt hash; the plaintext never reaches the domain.
    """
    id: str
    name: str
    email: str
    password_hash: str = ''


@dataclass
class ResponseUser:
    """Password-free projection of a User returned to clients."""
    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> 'ResponseUser':
        return cls(id=user.id, name=user.name, email=user.email)
