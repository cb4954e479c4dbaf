"""Seed the database with the bundled question bank."""
from pathlib import Path

from quiz_academy.db import get_connection
from quiz_academy.importer import import_question_bank

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already holds any academy."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM academies").fetchone()[0]
    conn.close()
    return count > 0


def seed_questions(db_path: str) -> dict:
    """Insert the bundled academies, topics and questions from questions.json."""
    return import_question_bank(db_path, str(CONTENT_DIR / "questions.json"))


def seed_all(db_path: str) -> None:
    """Seed an empty database. A second call is a no-op."""
    if is_seeded(db_path):
        return
    seed_questions(db_path)
