# tests/test_questions.py
from datetime import datetime, timedelta

from conftest import find_topic
from quiz_academy.db import get_connection
from quiz_academy.questions import (
    get_questions_by_ids, get_random_questions, get_smart_questions, list_academies, list_topics,
)
from quiz_academy.review import add_failed_question
from quiz_academy.sessions import record_answer, start_quiz_session


def _answer_at(db_path, session_id, question_id, label, when):
    record_answer(db_path, session_id, question_id, label, 5)
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE session_answers SET answered_at = ? WHERE session_id = ? AND question_id = ?",
        (when.isoformat(), session_id, question_id),
    )
    conn.commit()
    conn.close()


def test_list_academies_and_topics(seeded_db):
    academies = list_academies(seeded_db)
    assert [a["name"] for a in academies] == ["General Knowledge", "Programming"]
    topics = list_topics(seeded_db, academies[0]["id"])
    assert [t["name"] for t in topics] == ["Geography", "Science"]


def test_get_questions_by_ids(seeded_db):
    questions = get_questions_by_ids(seeded_db, ["geo-01", "sci-03", "missing"])
    assert sorted(q.id for q in questions) == ["geo-01", "sci-03"]
    assert get_questions_by_ids(seeded_db, []) == []


def test_question_rows_keep_optional_options(seeded_db):
    q = get_questions_by_ids(seeded_db, ["geo-06"])[0]
    assert q.option_c is None
    assert q.options() == [("A", "Yes"), ("B", "No")]
    assert q.part == "World"


def test_get_random_questions_respects_limit(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "Programming", "Python Basics")
    questions = get_random_questions(seeded_db, academy_id, topic_id, limit=5)
    assert len(questions) == 5
    assert len({q.id for q in questions}) == 5


def test_smart_questions_all_new(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "General Knowledge", "Geography")
    ranked = get_smart_questions(seeded_db, "ana", academy_id, topic_id, limit=10)
    assert len(ranked) == 8
    assert {level for _, level in ranked} == {2}


def test_smart_questions_priorities(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "General Knowledge", "Geography")
    session = start_quiz_session(seeded_db, "ana", academy_id, topic_id, "test")
    now = datetime.now()
    # geo-01 failed, geo-02 correct long ago, geo-03 correct yesterday
    _answer_at(seeded_db, session, "geo-01", "A", now)
    add_failed_question(seeded_db, "ana", "geo-01")
    _answer_at(seeded_db, session, "geo-02", "A", now - timedelta(days=45))
    _answer_at(seeded_db, session, "geo-03", "C", now - timedelta(days=1))

    ranked = get_smart_questions(seeded_db, "ana", academy_id, topic_id, limit=10)
    levels = {q.id: level for q, level in ranked}
    assert levels["geo-01"] == 1
    assert levels["geo-02"] == 3
    assert "geo-03" not in levels
    assert sum(1 for lvl in levels.values() if lvl == 2) == 5
    # Sorted by priority
    assert [level for _, level in ranked] == sorted(level for _, level in ranked)
    assert ranked[0][0].id == "geo-01"


def test_smart_questions_can_exclude_failed(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "General Knowledge", "Geography")
    add_failed_question(seeded_db, "ana", "geo-04")
    ranked = get_smart_questions(
        seeded_db, "ana", academy_id, topic_id, limit=10, include_failed=False
    )
    assert "geo-04" not in [q.id for q, _ in ranked]
    assert len(ranked) == 7


def test_smart_questions_limit_keeps_highest_priority(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "General Knowledge", "Geography")
    add_failed_question(seeded_db, "ana", "geo-05")
    add_failed_question(seeded_db, "ana", "geo-07")
    ranked = get_smart_questions(seeded_db, "ana", academy_id, topic_id, limit=3)
    assert len(ranked) == 3
    assert {q.id for q, level in ranked if level == 1} == {"geo-05", "geo-07"}


def test_smart_questions_are_per_user(seeded_db):
    academy_id, topic_id = find_topic(seeded_db, "General Knowledge", "Geography")
    add_failed_question(seeded_db, "ana", "geo-05")
    ranked = get_smart_questions(seeded_db, "ben", academy_id, topic_id, limit=10)
    assert {level for _, level in ranked} == {2}
