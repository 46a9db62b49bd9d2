"""Pre-DB bootstrap configuration. Zero imports from the rest of the app.

Stores settings that must be known before opening the DB (db_folder, owner_id,
log_level). Config lives in ~/.cashledger/config.json to avoid a bootstrapping problem.
"""
import getpass
import json
import os
from pathlib import Path

CONFIG_DIR = Path.home() / ".cashledger"
CONFIG_FILE = CONFIG_DIR / "config.json"
DEFAULT_DB_FILE = "cashledger.db"
DEFAULT_LOG_LEVEL = "INFO"


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file."""
    try:
        with open(path or CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config dir if needed; atomic write via .tmp + os.replace()."""
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    finally:
        tmp.unlink(missing_ok=True)


def get_db_path(config: dict | None = None) -> str:
    """Full path of the ledger database, honouring config["db_folder"]."""
    config = load_config() if config is None else config
    folder = config.get("db_folder")
    return os.path.join(folder, DEFAULT_DB_FILE) if folder else DEFAULT_DB_FILE


def set_db_folder(path: str | None) -> None:
    """Update db_folder in config and save."""
    config = load_config()
    if path is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = path
    save_config(config)


def get_owner_id(config: dict | None = None) -> str:
    """The principal the desktop app acts as; defaults to the OS login name."""
    config = load_config() if config is None else config
    return str(config.get("owner_id") or getpass.getuser())


def get_log_level(config: dict | None = None) -> str:
    config = load_config() if config is None else config
    return str(config.get("log_level") or DEFAULT_LOG_LEVEL).upper()
