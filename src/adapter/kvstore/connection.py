import os
import logging
from pathlib import Path

from adapter.kvstore.store import KeyValueStore

logger = logging.getLogger(__name__)

# Path of the store file. Relative paths resolve against the working directory.
LOCAL_DATABASE_PATH = os.getenv('LOCAL_DATABASE_PATH', 'users.db')


def open_store(path: str | None = None) -> KeyValueStore:
    """Open the key-value store, creating the file and its parent directory if needed.

    Args:
        path: Store file path. Defaults to LOCAL_DATABASE_PATH.

    Returns:
        An opened KeyValueStore. The caller owns it and must close it.

    Raises:
        StoreError: the file could not be opened or initialized
    """
    db_path = Path(path or LOCAL_DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    store = KeyValueStore(str(db_path)).open()
    logger.info("[KVSTORE] Store opened", extra={"path": str(db_path)})
    return store
