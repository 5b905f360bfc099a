# Storage schema for Pocket Classroom

# Compatibility tag carried by every capsule and checked on import
SCHEMA_VERSION = "pocket-classroom/v1"

INDEX_KEY = "pc_capsules_index"
CAPSULE_PREFIX = "pc_capsule_"
PROGRESS_PREFIX = "pc_progress_"

SCHEMA_SQL = """
-- Key-value documents (JSON text)
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_kv_updated ON kv (updated_at);
"""


def capsule_key(capsule_id: str) -> str:
    return CAPSULE_PREFIX + capsule_id


def progress_key(capsule_id: str) -> str:
    return PROGRESS_PREFIX + capsule_id
