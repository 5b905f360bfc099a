import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".pocket-classroom"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024
DEFAULT_AUTOSAVE_SECONDS = 30


def load_config() -> Dict[str, Any]:
    """Load config from ~/.pocket-classroom/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., POCKET_CLASSROOM_DB env var)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    storage_cfg = config.get("storage", {})
    db_path = os.getenv("POCKET_CLASSROOM_DB", storage_cfg.get("path") or "")
    config["storage"] = {
        "path": Path(db_path).expanduser() if db_path else CONFIG_DIR / "capsules.db",
    }
    attachments_cfg = config.get("attachments", {})
    config["attachments"] = {
        "max_bytes": int(os.getenv(
            "ATTACHMENT_MAX_BYTES",
            attachments_cfg.get("max_bytes", DEFAULT_MAX_ATTACHMENT_BYTES)
        )),
    }
    autosave_cfg = config.get("autosave", {})
    config["autosave"] = {
        "interval_seconds": float(os.getenv(
            "AUTOSAVE_INTERVAL",
            autosave_cfg.get("interval_seconds", DEFAULT_AUTOSAVE_SECONDS)
        )),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('autosave', 'interval_seconds')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
