import pytest

from quiz_academy.db import init_db
from quiz_academy.models import QuizQuestion
from quiz_academy.questions import list_academies, list_topics
from quiz_academy.seed import seed_all


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_academy.db")
    return db_path


@pytest.fixture
def seeded_db(tmp_db):
    """A temporary database holding the bundled question bank."""
    init_db(tmp_db)
    seed_all(tmp_db)
    return tmp_db


def find_topic(db_path, academy_name, topic_name):
    """Return (academy_id, topic_id) for names in the bundled bank."""
    academy = next(a for a in list_academies(db_path) if a["name"] == academy_name)
    topic = next(t for t in list_topics(db_path, academy["id"]) if t["name"] == topic_name)
    return academy["id"], topic["id"]


def make_question(qid, correct="A", academy_id="ac-1", topic_id="tp-1", option_c="Third", option_d="Fourth"):
    return QuizQuestion(
        id=qid,
        prompt=f"Question {qid}?",
        option_a="First",
        option_b="Second",
        option_c=option_c,
        option_d=option_d,
        correct_label=correct,
        academy_id=academy_id,
        topic_id=topic_id,
    )


class FakeBackend:
    """In-memory stand-in for every store the controller talks to.

    ``fail`` holds method names that raise, ``hooks`` maps a method name to a
    callable run at the start of that call.
    """

    def __init__(self, questions=(), session_id="sess-1"):
        self.questions = {q.id: q for q in questions}
        self.session_id = session_id
        self.failed = {}
        self.points = {}
        self.recorded = []
        self.calls = []
        self.fail = set()
        self.hooks = {}
        self.complete_payload = None
        self.smart_levels = {}

    def _call(self, name, *args):
        self.calls.append((name, args))
        hook = self.hooks.get(name)
        if hook:
            hook()
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")

    def called(self, name):
        return [args for call, args in self.calls if call == name]

    def fetch_questions_by_ids(self, question_ids):
        self._call("fetch_questions_by_ids", question_ids)
        return [self.questions[i] for i in question_ids if i in self.questions]

    def fetch_questions(self, academy_id, topic_id, limit):
        self._call("fetch_questions", academy_id, topic_id, limit)
        matching = [
            q for q in self.questions.values()
            if q.academy_id == academy_id and q.topic_id == topic_id
        ]
        return matching[:limit]

    def fetch_smart_questions(self, user_id, academy_id, topic_id, limit, days_threshold, include_failed):
        self._call("fetch_smart_questions", user_id, academy_id, topic_id, limit)
        matching = [
            q for q in self.questions.values()
            if q.academy_id == academy_id and q.topic_id == topic_id
        ]
        return [(q, self.smart_levels.get(q.id, 2)) for q in matching[:limit]]

    def start_session(self, user_id, academy_id, topic_id, mode):
        self._call("start_session", user_id, academy_id, topic_id, mode)
        return self.session_id

    def record_answer(self, session_id, question_id, selected_label, time_spent_seconds):
        self._call("record_answer", session_id, question_id, selected_label, time_spent_seconds)
        q = self.questions[question_id]
        self.recorded.append((question_id, q.is_correct(selected_label)))

    def complete_session(self, session_id):
        self._call("complete_session", session_id)
        if self.complete_payload is not None:
            return self.complete_payload
        correct = sum(1 for _, ok in self.recorded if ok)
        total = len(self.recorded)
        return {
            "total_questions": total,
            "correct_answers": correct,
            "incorrect_answers": total - correct,
            "score_percentage": round(correct / total * 100) if total else 0,
            "points_earned": correct * 10,
        }

    def mark_question_status(self, user_id, question_id, is_correct):
        self._call("mark_question_status", user_id, question_id, is_correct)
        if not is_correct:
            self.add_failed(user_id, question_id)

    def add_failed(self, user_id, question_id):
        self._call("add_failed", user_id, question_id)
        failed = self.failed.setdefault(user_id, [])
        if question_id not in failed:
            failed.append(question_id)

    def remove_failed(self, user_id, question_id):
        self._call("remove_failed", user_id, question_id)
        failed = self.failed.get(user_id, [])
        if question_id in failed:
            failed.remove(question_id)

    def failed_question_ids(self, user_id):
        self._call("failed_question_ids", user_id)
        return list(self.failed.get(user_id, []))

    def get_points(self, user_id):
        self._call("get_points", user_id)
        return self.points.get(user_id, 0)

    def set_points(self, user_id, points):
        self._call("set_points", user_id, points)
        self.points[user_id] = points


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
