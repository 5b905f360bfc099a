import logging
from pathlib import Path
from typing import List, Optional

from config import get_config_value
from models.capsule import Capsule, CapsuleMetadata
from models.progress import Progress
from utils import transfer
from .capsules import CapsuleStore, new_capsule
from .kvstore import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from .progress import ProgressStore
from .seed import sample_capsule

logger = logging.getLogger(__name__)

# None means "use [storage] path from config"
DB_PATH: Optional[Path] = None


def get_db_path() -> Path:
    if DB_PATH is not None:
        return Path(DB_PATH)
    return Path(get_config_value("storage", "path"))


def init_storage(capsules: CapsuleStore) -> bool:
    """Create the index and seed the example capsule on first-ever run.

    Returns True when seeding happened, False when the index already existed.
    """
    if capsules.has_index():
        return False
    with capsules.kv.transaction():
        capsules.create_index()
        sample = capsules.put(sample_capsule())
    logger.info("Initialized capsule library with sample capsule %s", sample.id)
    return True


class Storage:
    """Persistence surface used by the API layer.

    Wraps one key-value store; ``close()`` (or leaving a ``with`` block)
    releases it.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self.progress = ProgressStore(kv)
        self.capsules = CapsuleStore(kv, self.progress)

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def init_storage(self) -> bool:
        return init_storage(self.capsules)

    def list_all(self) -> List[CapsuleMetadata]:
        return self.capsules.list_all()

    def get(self, capsule_id: str) -> Optional[Capsule]:
        return self.capsules.get(capsule_id)

    def put(self, capsule: Capsule) -> Capsule:
        return self.capsules.put(capsule)

    def delete(self, capsule_id: str) -> None:
        self.capsules.delete(capsule_id)

    def new_capsule(self) -> Capsule:
        return new_capsule()

    def get_progress(self, capsule_id: str) -> Progress:
        return self.progress.get(capsule_id)

    def save_progress(self, progress: Progress) -> Progress:
        return self.progress.save(progress)

    def record_known(self, capsule_id: str, card_id: str) -> Progress:
        return self.progress.record_known(capsule_id, card_id)

    def record_unknown(self, capsule_id: str, card_id: str) -> Progress:
        return self.progress.record_unknown(capsule_id, card_id)

    def record_quiz_score(self, capsule_id: str, score: int) -> Progress:
        return self.progress.record_quiz_score(capsule_id, score)

    def export_capsule(self, capsule: Capsule) -> str:
        return transfer.export_capsule(capsule)

    def import_capsule(self, text: str) -> Capsule:
        return transfer.import_capsule(text)

    def close(self) -> None:
        self.kv.close()


def open_storage(path: Optional[Path] = None) -> Storage:
    """Open the on-disk SQLite store (configured path by default)."""
    return Storage(SqliteKeyValueStore(path or get_db_path()))


def memory_storage() -> Storage:
    return Storage(MemoryKeyValueStore())


def init_db() -> bool:
    """Create the database file if needed and seed it on first run."""
    with open_storage() as storage:
        return storage.init_storage()


def get_db():
    """FastAPI dependency that yields a Storage and closes it afterwards."""
    with open_storage() as storage:
        yield storage
