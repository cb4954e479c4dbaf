"""SQLite implementation of the stores the quiz controller talks to."""
from quiz_academy import questions, review, sessions
from quiz_academy.db import DEFAULT_DB_PATH


class SqliteBackend:
    """Question store, session recorder, question-status store and profile store."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH, points_per_correct: int = sessions.POINTS_PER_CORRECT):
        self.db_path = db_path
        self.points_per_correct = points_per_correct

    # Question store

    def fetch_questions_by_ids(self, question_ids):
        return questions.get_questions_by_ids(self.db_path, question_ids)

    def fetch_questions(self, academy_id, topic_id, limit):
        return questions.get_random_questions(self.db_path, academy_id, topic_id, limit)

    def fetch_smart_questions(self, user_id, academy_id, topic_id, limit, days_threshold, include_failed):
        return questions.get_smart_questions(
            self.db_path, user_id, academy_id, topic_id, limit, days_threshold, include_failed
        )

    # Session recorder

    def start_session(self, user_id, academy_id, topic_id, mode):
        return sessions.start_quiz_session(self.db_path, user_id, academy_id, topic_id, mode)

    def record_answer(self, session_id, question_id, selected_label, time_spent_seconds):
        sessions.record_answer(self.db_path, session_id, question_id, selected_label, time_spent_seconds)

    def complete_session(self, session_id):
        return sessions.complete_quiz_session(self.db_path, session_id, self.points_per_correct)

    # Question-status store

    def mark_question_status(self, user_id, question_id, is_correct):
        review.mark_question_status(self.db_path, user_id, question_id, is_correct)

    def add_failed(self, user_id, question_id):
        review.add_failed_question(self.db_path, user_id, question_id)

    def remove_failed(self, user_id, question_id):
        review.remove_failed_question(self.db_path, user_id, question_id)

    def failed_question_ids(self, user_id):
        return review.get_failed_question_ids(self.db_path, user_id)

    # Profile store

    def get_points(self, user_id):
        return sessions.get_points(self.db_path, user_id)

    def set_points(self, user_id, points):
        sessions.set_points(self.db_path, user_id, points)
