"""Failed-question bookkeeping for mistake-driven practice."""
from datetime import datetime

from quiz_academy.db import get_connection


def add_failed_question(db_path: str, user_id: str, question_id: str) -> None:
    """Add a question to the user's failed set. Re-adding is a no-op."""
    conn = get_connection(db_path)
    conn.execute(
        "INSERT OR IGNORE INTO failed_questions (user_id, question_id, created_at) VALUES (?, ?, ?)",
        (user_id, question_id, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()


def remove_failed_question(db_path: str, user_id: str, question_id: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "DELETE FROM failed_questions WHERE user_id = ? AND question_id = ?",
        (user_id, question_id),
    )
    conn.commit()
    conn.close()


def mark_question_status(db_path: str, user_id: str, question_id: str, is_correct: bool) -> None:
    """Record the outcome of an answer. Only incorrect answers touch the failed set."""
    if not is_correct:
        add_failed_question(db_path, user_id, question_id)


def get_failed_question_ids(db_path: str, user_id: str) -> list[str]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT question_id FROM failed_questions WHERE user_id = ? ORDER BY created_at, id",
        (user_id,),
    ).fetchall()
    conn.close()
    return [r["question_id"] for r in rows]


def reset_topic_progress(db_path: str, user_id: str, topic_id: str) -> int:
    """Forget the user's answers and failed questions for one topic.

    Returns the number of questions in the topic, 0 when the topic is empty.
    """
    conn = get_connection(db_path)
    ids = [
        r["id"]
        for r in conn.execute("SELECT id FROM questions WHERE topic_id = ?", (topic_id,)).fetchall()
    ]
    if not ids:
        conn.close()
        return 0
    placeholders = ",".join("?" for _ in ids)
    conn.execute(
        f"DELETE FROM session_answers WHERE user_id = ? AND question_id IN ({placeholders})",
        [user_id, *ids],
    )
    conn.execute(
        f"DELETE FROM failed_questions WHERE user_id = ? AND question_id IN ({placeholders})",
        [user_id, *ids],
    )
    conn.commit()
    conn.close()
    return len(ids)
