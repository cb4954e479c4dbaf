"""Question store: lookups over the question bank."""
from datetime import datetime, timedelta

from quiz_academy.db import get_connection
from quiz_academy.models import QuizQuestion


def get_questions_by_ids(db_path: str, question_ids: list[str]) -> list[QuizQuestion]:
    if not question_ids:
        return []
    placeholders = ",".join("?" for _ in question_ids)
    conn = get_connection(db_path)
    rows = conn.execute(
        f"SELECT * FROM questions WHERE id IN ({placeholders})", list(question_ids)
    ).fetchall()
    conn.close()
    return [QuizQuestion.from_row(r) for r in rows]


def get_random_questions(db_path: str, academy_id: str, topic_id: str, limit: int = 10) -> list[QuizQuestion]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM questions WHERE academy_id = ? AND topic_id = ? ORDER BY RANDOM() LIMIT ?",
        (academy_id, topic_id, limit),
    ).fetchall()
    conn.close()
    return [QuizQuestion.from_row(r) for r in rows]


def get_smart_questions(
    db_path: str,
    user_id: str,
    academy_id: str,
    topic_id: str,
    limit: int = 10,
    days_threshold: int = 30,
    include_failed: bool = True,
) -> list[tuple[QuizQuestion, int]]:
    """Pick questions by priority and return (question, priority_level) pairs.

    Priority 1 is a question in the user's failed set, 2 one the user has never
    answered, 3 one last answered correctly more than ``days_threshold`` days ago.
    Questions answered correctly more recently are not candidates.
    """
    cutoff = (datetime.now() - timedelta(days=days_threshold)).isoformat()
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT q.*,
            EXISTS(SELECT 1 FROM failed_questions f
                   WHERE f.user_id = ? AND f.question_id = q.id) AS is_failed,
            (SELECT COUNT(*) FROM session_answers a
             WHERE a.user_id = ? AND a.question_id = q.id) AS times_answered,
            (SELECT MAX(a.answered_at) FROM session_answers a
             WHERE a.user_id = ? AND a.question_id = q.id AND a.is_correct = 1) AS last_correct
        FROM questions q
        WHERE q.academy_id = ? AND q.topic_id = ?
        ORDER BY RANDOM()""",
        (user_id, user_id, user_id, academy_id, topic_id),
    ).fetchall()
    conn.close()

    ranked = []
    for r in rows:
        if r["is_failed"]:
            if not include_failed:
                continue
            level = 1
        elif r["times_answered"] == 0:
            level = 2
        elif r["last_correct"] is None or r["last_correct"] < cutoff:
            level = 3
        else:
            continue
        ranked.append((QuizQuestion.from_row(r), level))
    ranked.sort(key=lambda pair: pair[1])
    return ranked[:limit]


def list_academies(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT id, name FROM academies ORDER BY name").fetchall()
    conn.close()
    return [dict(r) for r in rows]


def list_topics(db_path: str, academy_id: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT id, academy_id, name FROM topics WHERE academy_id = ? ORDER BY name",
        (academy_id,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]
