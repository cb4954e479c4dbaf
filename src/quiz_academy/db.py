"""Database initialization and connection management."""
import sqlite3
import uuid
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".quiz_academy" / "academy.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS academies (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    academy_id TEXT NOT NULL REFERENCES academies(id),
    name TEXT NOT NULL,
    created_at TEXT,
    UNIQUE(academy_id, name)
);

CREATE TABLE IF NOT EXISTS questions (
    id TEXT PRIMARY KEY,
    academy_id TEXT NOT NULL REFERENCES academies(id),
    topic_id TEXT NOT NULL REFERENCES topics(id),
    part TEXT,
    prompt TEXT NOT NULL,
    option_a TEXT NOT NULL,
    option_b TEXT NOT NULL,
    option_c TEXT,
    option_d TEXT,
    correct_label TEXT NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS profiles (
    id TEXT PRIMARY KEY,
    username TEXT,
    points INTEGER DEFAULT 0,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS failed_questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    question_id TEXT NOT NULL REFERENCES questions(id),
    created_at TEXT,
    UNIQUE(user_id, question_id)
);

CREATE TABLE IF NOT EXISTS quiz_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    academy_id TEXT NOT NULL REFERENCES academies(id),
    topic_id TEXT NOT NULL REFERENCES topics(id),
    mode TEXT NOT NULL,
    total_questions INTEGER DEFAULT 0,
    correct_answers INTEGER DEFAULT 0,
    incorrect_answers INTEGER DEFAULT 0,
    score_percentage REAL,
    time_started TEXT,
    time_completed TEXT,
    duration_seconds INTEGER,
    is_completed INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS session_answers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL REFERENCES quiz_sessions(id),
    user_id TEXT NOT NULL,
    question_id TEXT NOT NULL REFERENCES questions(id),
    selected_label TEXT NOT NULL,
    correct_label TEXT NOT NULL,
    is_correct INTEGER NOT NULL,
    time_spent_seconds INTEGER,
    answered_at TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def new_id() -> str:
    return uuid.uuid4().hex
