"""Quiz session recording and profile points."""
from datetime import datetime

from quiz_academy.db import get_connection, new_id
from quiz_academy.models import SessionNotFound, normalize_label

POINTS_PER_CORRECT = 10


def ensure_profile(db_path: str, user_id: str, username: str | None = None) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT OR IGNORE INTO profiles (id, username, points, updated_at) VALUES (?, ?, 0, ?)",
        (user_id, username or user_id, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()


def get_points(db_path: str, user_id: str) -> int:
    conn = get_connection(db_path)
    row = conn.execute("SELECT points FROM profiles WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    return (row["points"] or 0) if row else 0


def set_points(db_path: str, user_id: str, points: int) -> None:
    ensure_profile(db_path, user_id)
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE profiles SET points = ?, updated_at = ? WHERE id = ?",
        (points, datetime.now().isoformat(), user_id),
    )
    conn.commit()
    conn.close()


def start_quiz_session(db_path: str, user_id: str, academy_id: str, topic_id: str, mode: str) -> str:
    """Open a session row and return its id."""
    ensure_profile(db_path, user_id)
    session_id = new_id()
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO quiz_sessions (id, user_id, academy_id, topic_id, mode, time_started)
        VALUES (?, ?, ?, ?, ?, ?)""",
        (session_id, user_id, academy_id, topic_id, mode, datetime.now().isoformat()),
    )
    conn.commit()
    conn.close()
    return session_id


def _open_session(conn, session_id: str):
    session = conn.execute(
        "SELECT * FROM quiz_sessions WHERE id = ? AND is_completed = 0", (session_id,)
    ).fetchone()
    if session is None:
        raise SessionNotFound(f"No open session {session_id}")
    return session


def record_answer(
    db_path: str, session_id: str, question_id: str, selected_label: str, time_spent_seconds: int
) -> bool:
    """Store one answer of an open session. Correctness comes from the stored solution."""
    conn = get_connection(db_path)
    try:
        session = _open_session(conn, session_id)
        question = conn.execute(
            "SELECT correct_label FROM questions WHERE id = ?", (question_id,)
        ).fetchone()
        if question is None:
            raise LookupError(f"Unknown question {question_id}")
        is_correct = normalize_label(selected_label) == normalize_label(question["correct_label"])
        conn.execute(
            """INSERT INTO session_answers
            (session_id, user_id, question_id, selected_label, correct_label, is_correct,
             time_spent_seconds, answered_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                session_id, session["user_id"], question_id, selected_label,
                question["correct_label"], int(is_correct), max(0, int(time_spent_seconds)),
                datetime.now().isoformat(),
            ),
        )
        conn.commit()
    finally:
        conn.close()
    return is_correct


def complete_quiz_session(db_path: str, session_id: str, points_per_correct: int = POINTS_PER_CORRECT) -> dict:
    """Close a session, credit its points and return the aggregate payload."""
    conn = get_connection(db_path)
    try:
        session = _open_session(conn, session_id)
        row = conn.execute(
            "SELECT COUNT(*) AS total, COALESCE(SUM(is_correct), 0) AS correct "
            "FROM session_answers WHERE session_id = ?",
            (session_id,),
        ).fetchone()
        total, correct = row["total"], row["correct"]
        percentage = round(correct / total * 100) if total else 0
        points = correct * points_per_correct
        now = datetime.now()
        duration = int((now - datetime.fromisoformat(session["time_started"])).total_seconds())
        conn.execute(
            """UPDATE quiz_sessions SET total_questions = ?, correct_answers = ?,
            incorrect_answers = ?, score_percentage = ?, time_completed = ?,
            duration_seconds = ?, is_completed = 1 WHERE id = ?""",
            (total, correct, total - correct, percentage, now.isoformat(), duration, session_id),
        )
        conn.execute(
            "UPDATE profiles SET points = COALESCE(points, 0) + ?, updated_at = ? WHERE id = ?",
            (points, now.isoformat(), session["user_id"]),
        )
        conn.commit()
    finally:
        conn.close()
    return {
        "total_questions": total,
        "correct_answers": correct,
        "incorrect_answers": total - correct,
        "score_percentage": percentage,
        "points_earned": points,
    }
