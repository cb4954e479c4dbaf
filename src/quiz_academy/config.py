"""Application configuration and persisted user settings."""
import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from quiz_academy.db import DEFAULT_DB_PATH, get_connection

DB_ENV_VAR = "QUIZ_ACADEMY_DB"
DEFAULT_CONFIG_PATH = Path.home() / ".quiz_academy" / "config.yaml"


@dataclass
class QuizConfig:
    db_path: str = DEFAULT_DB_PATH
    question_limit: int = 10
    points_per_correct: int = 10
    smart_selection: bool = True
    days_threshold: int = 30
    include_failed: bool = True
    log_level: str = "WARNING"


def load_config(path: str | Path | None = None) -> QuizConfig:
    """Build a QuizConfig from an optional YAML file and the environment.

    Unknown keys in the file are ignored. ``QUIZ_ACADEMY_DB`` wins over the
    file's ``db_path``.
    """
    path = Path(path) if path else DEFAULT_CONFIG_PATH
    values = {}
    if path.exists():
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        known = {f.name for f in fields(QuizConfig)}
        values = {k: v for k, v in data.items() if k in known}
    config = QuizConfig(**values)
    if os.environ.get(DB_ENV_VAR):
        config.db_path = os.environ[DB_ENV_VAR]
    return config


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_current_user(db_path: str) -> str | None:
    return get_setting(db_path, "current_user")


def set_current_user(db_path: str, user_id: str) -> None:
    set_setting(db_path, "current_user", user_id)


def get_smart_selection(db_path: str, default: bool = True) -> bool:
    value = get_setting(db_path, "smart_selection")
    if value is None:
        return default
    return value == "1"


def set_smart_selection(db_path: str, enabled: bool) -> None:
    set_setting(db_path, "smart_selection", "1" if enabled else "0")
