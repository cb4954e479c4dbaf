"""User statistics, topic mastery and rankings."""
from quiz_academy.db import get_connection
from quiz_academy.models import RankingEntry, TopicStats, UserStats


def get_mastery_label(percentage: float, attempts: int) -> str:
    if percentage >= 90 and attempts >= 2:
        return "Dominado"
    elif percentage >= 80 and attempts >= 3:
        return "Casi Dominado"
    elif percentage >= 70:
        return "En Progreso"
    return "Necesita Práctica"


def get_mastery_color(label: str) -> str:
    return {
        "Dominado": "yellow",
        "Casi Dominado": "blue",
        "En Progreso": "green",
    }.get(label, "red")


def get_user_stats(db_path: str, user_id: str) -> UserStats:
    conn = get_connection(db_path)
    sessions = conn.execute(
        """SELECT COUNT(*) AS total,
            COALESCE(SUM(is_completed), 0) AS completed,
            MAX(CASE WHEN is_completed = 1 THEN score_percentage END) AS best
        FROM quiz_sessions WHERE user_id = ?""",
        (user_id,),
    ).fetchone()
    answers = conn.execute(
        """SELECT COUNT(*) AS total, COALESCE(SUM(is_correct), 0) AS correct,
            MAX(answered_at) AS last_activity
        FROM session_answers WHERE user_id = ?""",
        (user_id,),
    ).fetchone()
    failed = conn.execute(
        "SELECT COUNT(*) FROM failed_questions WHERE user_id = ?", (user_id,)
    ).fetchone()[0]
    profile = conn.execute("SELECT points FROM profiles WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    accuracy = round(answers["correct"] / answers["total"] * 100, 1) if answers["total"] else 0.0
    return UserStats(
        total_sessions=sessions["total"],
        completed_sessions=sessions["completed"],
        total_questions_answered=answers["total"],
        total_correct_answers=answers["correct"],
        overall_accuracy_percentage=accuracy,
        current_failed_questions=failed,
        best_session_score_percentage=sessions["best"] or 0.0,
        last_activity=answers["last_activity"],
        points=(profile["points"] or 0) if profile else 0,
    )


def get_topic_stats(db_path: str, user_id: str) -> list[TopicStats]:
    """Per-topic mastery for every topic the user has answered at least once.

    A question counts as correct once it has been answered correctly in any
    session, and as incorrect only if every answer to it was wrong.
    """
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT t.id AS topic_id, t.name AS topic_name,
            a.id AS academy_id, a.name AS academy_name,
            COUNT(DISTINCT sa.question_id) AS answered,
            COUNT(DISTINCT CASE WHEN sa.is_correct = 1 THEN sa.question_id END) AS correct,
            COUNT(DISTINCT sa.session_id) AS attempts,
            MAX(sa.answered_at) AS last_answer,
            (SELECT COUNT(*) FROM questions q2 WHERE q2.topic_id = t.id) AS total_in_topic
        FROM session_answers sa
        JOIN questions q ON sa.question_id = q.id
        JOIN topics t ON q.topic_id = t.id
        JOIN academies a ON t.academy_id = a.id
        WHERE sa.user_id = ?
        GROUP BY t.id
        ORDER BY a.name, t.name""",
        (user_id,),
    ).fetchall()
    failed_rows = conn.execute(
        """SELECT f.question_id, q.topic_id FROM failed_questions f
        JOIN questions q ON f.question_id = q.id
        WHERE f.user_id = ? ORDER BY f.created_at, f.id""",
        (user_id,),
    ).fetchall()
    conn.close()

    failed_by_topic: dict[str, list[str]] = {}
    for r in failed_rows:
        failed_by_topic.setdefault(r["topic_id"], []).append(r["question_id"])

    results = []
    for r in rows:
        answered = r["answered"]
        percentage = round(r["correct"] / answered * 100) if answered else 0
        total = r["total_in_topic"]
        results.append(TopicStats(
            topic_id=r["topic_id"],
            topic_name=r["topic_name"],
            academy_id=r["academy_id"],
            academy_name=r["academy_name"],
            answered=answered,
            correct=r["correct"],
            incorrect=answered - r["correct"],
            percentage=percentage,
            total_in_topic=total,
            pending=max(0, total - answered),
            progress=round(answered / total * 100) if total else 0,
            attempts=r["attempts"],
            mastery=get_mastery_label(percentage, r["attempts"]),
            last_answer=r["last_answer"],
            failed_question_ids=failed_by_topic.get(r["topic_id"], []),
        ))
    return results


def get_rankings(db_path: str, limit: int = 50) -> list[RankingEntry]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT p.id, p.username, COALESCE(p.points, 0) AS points,
            (SELECT COUNT(*) FROM quiz_sessions s
             WHERE s.user_id = p.id AND s.is_completed = 1) AS completed,
            (SELECT AVG(sa.is_correct) * 100 FROM session_answers sa
             WHERE sa.user_id = p.id) AS accuracy
        FROM profiles p
        ORDER BY points DESC, p.username
        LIMIT ?""",
        (limit,),
    ).fetchall()
    conn.close()
    return [
        RankingEntry(
            position=i,
            user_id=r["id"],
            username=r["username"] or r["id"],
            points=r["points"],
            completed_sessions=r["completed"],
            accuracy=round(r["accuracy"], 1) if r["accuracy"] is not None else 0.0,
        )
        for i, r in enumerate(rows, 1)
    ]


def find_rank(rankings: list[RankingEntry], user_id: str) -> int | None:
    for entry in rankings:
        if entry.user_id == user_id:
            return entry.position
    return None
