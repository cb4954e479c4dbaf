# tests/test_sessions.py
import pytest

from conftest import find_topic
from quiz_academy.db import get_connection
from quiz_academy.models import SessionNotFound
from quiz_academy.sessions import (
    complete_quiz_session, ensure_profile, get_points, record_answer, set_points,
    start_quiz_session,
)


@pytest.fixture
def session(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "General Knowledge", "Science")
    return start_quiz_session(seeded_db, "ana", academy_id, topic_id, "test")


def test_start_quiz_session_creates_profile(seeded_db, session):
    conn = get_connection(seeded_db)
    row = conn.execute("SELECT * FROM quiz_sessions WHERE id = ?", (session,)).fetchone()
    conn.close()
    assert row["user_id"] == "ana"
    assert row["is_completed"] == 0
    assert get_points(seeded_db, "ana") == 0


def test_record_answer_computes_correctness(seeded_db, session):
    assert record_answer(seeded_db, session, "sci-01", "c", 7) is True
    assert record_answer(seeded_db, session, "sci-02", "B", 3) is False
    conn = get_connection(seeded_db)
    rows = conn.execute(
        "SELECT * FROM session_answers WHERE session_id = ? ORDER BY id", (session,)
    ).fetchall()
    conn.close()
    assert [r["is_correct"] for r in rows] == [1, 0]
    assert rows[0]["correct_label"] == "C"
    assert rows[0]["time_spent_seconds"] == 7


def test_record_answer_clamps_negative_time(seeded_db, session):
    record_answer(seeded_db, session, "sci-01", "C", -4)
    conn = get_connection(seeded_db)
    spent = conn.execute("SELECT time_spent_seconds FROM session_answers").fetchone()[0]
    conn.close()
    assert spent == 0


def test_record_answer_unknown_session(seeded_db):
    with pytest.raises(SessionNotFound):
        record_answer(seeded_db, "nope", "sci-01", "C", 1)


def test_record_answer_unknown_question(seeded_db, session):
    with pytest.raises(LookupError):
        record_answer(seeded_db, session, "nope", "C", 1)


def test_complete_quiz_session(seeded_db, session):
    record_answer(seeded_db, session, "sci-01", "C", 2)
    record_answer(seeded_db, session, "sci-03", "B", 2)
    record_answer(seeded_db, session, "sci-04", "A", 2)

    payload = complete_quiz_session(seeded_db, session)

    assert payload == {
        "total_questions": 3,
        "correct_answers": 2,
        "incorrect_answers": 1,
        "score_percentage": 67,
        "points_earned": 20,
    }
    assert get_points(seeded_db, "ana") == 20
    conn = get_connection(seeded_db)
    row = conn.execute("SELECT * FROM quiz_sessions WHERE id = ?", (session,)).fetchone()
    conn.close()
    assert row["is_completed"] == 1
    assert row["time_completed"] is not None
    assert row["duration_seconds"] >= 0


def test_complete_empty_session(seeded_db, session):
    payload = complete_quiz_session(seeded_db, session)
    assert payload["total_questions"] == 0
    assert payload["score_percentage"] == 0


def test_complete_twice_raises(seeded_db, session):
    complete_quiz_session(seeded_db, session)
    with pytest.raises(SessionNotFound):
        complete_quiz_session(seeded_db, session)
    with pytest.raises(SessionNotFound):
        record_answer(seeded_db, session, "sci-01", "C", 1)


def test_custom_points_per_correct(seeded_db, session):
    record_answer(seeded_db, session, "sci-01", "C", 2)
    payload = complete_quiz_session(seeded_db, session, points_per_correct=25)
    assert payload["points_earned"] == 25
    assert get_points(seeded_db, "ana") == 25


def test_points(tmp_db):
    from quiz_academy.db import init_db
    init_db(tmp_db)
    assert get_points(tmp_db, "ghost") == 0
    set_points(tmp_db, "ghost", 40)
    assert get_points(tmp_db, "ghost") == 40
    ensure_profile(tmp_db, "ghost")  # existing profile untouched
    assert get_points(tmp_db, "ghost") == 40
