from fastapi import HTTPException, Request

from adapter.kvstore.store import KeyValueStore
from adapter.kvstore.user_repository import KVStoreUserRepository
from port.user_repository import UserRepository


def get_store(request: Request) -> KeyValueStore:
    """Get the store opened at startup, raising 503 if unavailable."""
    store = getattr(request.app.state, "store", None)
    if store is None or store.closed:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return store


def get_user_repo(request: Request) -> UserRepository:
    return KVStoreUserRepository(get_store(request))
