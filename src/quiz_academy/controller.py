"""Quiz session controller.

Drives one quiz attempt: load a batch of questions, present them one at a
time, record each answer locally and through the session recorder, advance,
and finalize the attempt into a QuizStats summary.

The controller never looks up the current user or the backend on its own.
Both come in through a QuizContext and the collaborator objects passed to the
constructor, so tests can hand in fakes.

Remote calls made while answering are best-effort: a failure is logged and
notified, and the quiz carries on with its local state. When a session
cannot be opened the controller scores the attempt locally and credits the
points itself on completion.
"""
import logging
import math
import random
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from quiz_academy.config import QuizConfig
from quiz_academy.models import (
    MODE_PRACTICE,
    MODE_TEST,
    MODES,
    AnswerRecord,
    InvalidStatsPayload,
    NoQuestionsAvailable,
    QuestionLoadError,
    QuizError,
    QuizQuestion,
    QuizStats,
    SelectionMetadata,
)
from quiz_academy.selection import select_questions

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]

STATS_KEYS = (
    "total_questions",
    "correct_answers",
    "incorrect_answers",
    "score_percentage",
    "points_earned",
)


@dataclass
class QuizContext:
    user_id: Optional[str]
    config: QuizConfig = field(default_factory=QuizConfig)
    notify: Optional[Notifier] = None
    clock: Callable[[], float] = time.monotonic
    rng: random.Random = field(default_factory=random.Random)


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of submit_answer. Only ``correct`` is truthy."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    IGNORED = "ignored"
    FAILED = "failed"

    status: str
    error: Optional[str] = None

    @property
    def is_correct(self) -> bool:
        return self.status == self.CORRECT

    @property
    def answered(self) -> bool:
        return self.status in (self.CORRECT, self.INCORRECT)

    def __bool__(self) -> bool:
        return self.is_correct


@dataclass
class QuizState:
    session_id: Optional[str] = None
    questions: list[QuizQuestion] = field(default_factory=list)
    current_index: int = 0
    score: int = 0
    selected_answer: Optional[str] = None
    is_revealed: bool = False
    is_loading: bool = False
    is_answering: bool = False
    start_time: float = 0.0
    answers: list[AnswerRecord] = field(default_factory=list)
    mode: str = MODE_TEST
    academy_id: Optional[str] = None
    topic_id: Optional[str] = None
    question_ids: list[str] = field(default_factory=list)
    remaining_questions: int = 0
    selection_metadata: Optional[SelectionMetadata] = None


def _average_time(answers: list[AnswerRecord]) -> int:
    if not answers:
        return 0
    return round(sum(a.time_spent for a in answers) / len(answers))


def _still_failed(answers: list[AnswerRecord]) -> tuple[str, ...]:
    return tuple(a.question_id for a in answers if not a.is_correct)


def _remaining(state: QuizState) -> int:
    return max(0, state.remaining_questions - state.score) if state.remaining_questions else 0


def map_session_stats(payload, state: QuizState) -> QuizStats:
    """Map a "complete session" payload onto QuizStats.

    Raises InvalidStatsPayload unless the payload is a mapping holding a
    finite number under every key in STATS_KEYS.
    """
    if not isinstance(payload, Mapping):
        raise InvalidStatsPayload(f"Expected a mapping, got {type(payload).__name__}")
    values = {}
    for key in STATS_KEYS:
        value = payload.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidStatsPayload(f"{key}: expected a number, got {value!r}")
        if not math.isfinite(value):
            raise InvalidStatsPayload(f"{key}: expected a finite number, got {value!r}")
        values[key] = int(round(value))
    return QuizStats(
        total_questions=values["total_questions"],
        correct_answers=values["correct_answers"],
        incorrect_answers=values["incorrect_answers"],
        percentage=values["score_percentage"],
        average_time_per_question=_average_time(state.answers),
        questions_answered=len(state.answers),
        points_earned=values["points_earned"],
        remaining_questions_in_topic=_remaining(state),
        original_failed_questions_count=len(state.question_ids),
        questions_still_failed=_still_failed(state.answers),
    )


class QuizController:
    def __init__(self, context: QuizContext, store, recorder=None, status_store=None, profiles=None):
        self.context = context
        self.store = store
        self.recorder = recorder or store
        self.status_store = status_store or store
        self.profiles = profiles or store
        self.smart_selection = context.config.smart_selection
        self.state = QuizState(start_time=context.clock())
        self._generation = 0

    # ---------- helpers ----------

    def _notify(self, title: str, message: str) -> None:
        if self.context.notify is not None:
            self.context.notify(title, message)

    def _best_effort(self, what: str, func, *args) -> bool:
        try:
            func(*args)
            return True
        except Exception as exc:
            logger.warning("%s failed: %s", what, exc)
            self._notify("Error", f"Could not {what}.")
            return False

    def _open_session(self, mode: str, academy_id, topic_id) -> Optional[str]:
        if not (academy_id and topic_id):
            return None
        try:
            session_id = self.recorder.start_session(self.context.user_id, academy_id, topic_id, mode)
        except Exception as exc:
            logger.warning("Session creation failed, scoring locally: %s", exc)
            return None
        logger.info("Session created: %s", session_id)
        return session_id

    # ---------- actions ----------

    def load_questions(self, mode: str, academy_id=None, topic_id=None, question_ids=None):
        """Load a fresh batch and open a session for it.

        Returns the selection metadata, or None when no user is signed in.
        Raises NoQuestionsAvailable, InsufficientFilters or QuestionLoadError.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown quiz mode: {mode!r}")
        user_id = self.context.user_id
        if not user_id:
            logger.error("No user found, not loading questions")
            return None

        self._generation += 1
        self.state.is_loading = True
        config = self.context.config
        try:
            result = select_questions(
                self.store,
                user_id,
                mode,
                academy_id,
                topic_id,
                question_ids,
                limit=config.question_limit,
                smart=self.smart_selection,
                config=config,
                rng=self.context.rng,
                notify=self.context.notify,
            )
            if not result.questions:
                raise NoQuestionsAvailable("No questions available for this selection")
        except QuizError as exc:
            self.state.is_loading = False
            self._notify("Load error", str(exc))
            raise
        except Exception as exc:
            logger.exception("Error loading questions")
            self.state.is_loading = False
            self._notify("Load error", "Could not load the questions.")
            raise QuestionLoadError(str(exc)) from exc

        if question_ids:
            academy_id = result.questions[0].academy_id
            topic_id = result.questions[0].topic_id
        session_id = self._open_session(mode, academy_id, topic_id)

        self.state = QuizState(
            session_id=session_id,
            questions=list(result.questions),
            start_time=self.context.clock(),
            mode=mode,
            academy_id=academy_id,
            topic_id=topic_id,
            question_ids=list(question_ids or []),
            remaining_questions=result.metadata.total_available,
            selection_metadata=result.metadata,
        )
        logger.info(
            "Loaded %d questions (%s)", len(result.questions), result.metadata.selection_method
        )
        return result.metadata

    def submit_answer(self, selected_label: str) -> AnswerResult:
        state = self.state
        question = self.current_question
        user_id = self.context.user_id
        if not user_id or question is None or state.is_revealed or state.is_answering:
            return AnswerResult(AnswerResult.IGNORED)

        generation = self._generation
        time_spent = max(0, round(self.context.clock() - state.start_time))
        state.is_answering = True
        state.selected_answer = selected_label
        try:
            is_correct = question.is_correct(selected_label)

            self._best_effort(
                "update the question status",
                self.status_store.mark_question_status, user_id, question.id, is_correct,
            )
            if state.session_id:
                self._best_effort(
                    "record the answer",
                    self.recorder.record_answer, state.session_id, question.id, selected_label, time_spent,
                )
            if state.mode == MODE_PRACTICE and is_correct:
                self._best_effort(
                    "clear the failed question", self.status_store.remove_failed, user_id, question.id
                )
            elif state.mode == MODE_TEST and not is_correct:
                self._best_effort(
                    "save the failed question", self.status_store.add_failed, user_id, question.id
                )

            if generation != self._generation:
                logger.info("Discarding stale answer for question %s", question.id)
                return AnswerResult(AnswerResult.IGNORED)

            state.answers.append(AnswerRecord(
                question_id=question.id,
                selected_label=selected_label,
                correct_label=question.correct_label,
                is_correct=is_correct,
                time_spent=time_spent,
            ))
            if is_correct:
                state.score += 1
            state.is_revealed = True
            return AnswerResult(AnswerResult.CORRECT if is_correct else AnswerResult.INCORRECT)
        except Exception as exc:
            logger.exception("Error processing answer")
            self._notify("Error", "There was a problem processing the answer.")
            return AnswerResult(AnswerResult.FAILED, error=str(exc))
        finally:
            state.is_answering = False

    def next_question(self) -> None:
        state = self.state
        state.current_index += 1
        state.selected_answer = None
        state.is_revealed = False
        state.is_answering = False
        state.start_time = self.context.clock()

    def complete_quiz(self) -> QuizStats:
        state = self.state
        try:
            if state.session_id:
                stats = self._complete_remote(state)
            else:
                stats = self.manual_stats()
                if self.context.user_id and state.score > 0:
                    self._award_points(state.score * self.context.config.points_per_correct)
        finally:
            state.session_id = None
        return stats

    def _complete_remote(self, state: QuizState) -> QuizStats:
        try:
            payload = self.recorder.complete_session(state.session_id)
            return map_session_stats(payload, state)
        except InvalidStatsPayload as exc:
            logger.warning("Unexpected session stats, using local tally: %s", exc)
        except Exception as exc:
            logger.warning("complete session failed, using local tally: %s", exc)
            self._notify("Error", "There was a problem completing the quiz.")
        return self.manual_stats()

    def _award_points(self, points: int) -> None:
        user_id = self.context.user_id
        try:
            current = self.profiles.get_points(user_id) or 0
            self.profiles.set_points(user_id, current + points)
        except Exception as exc:
            logger.warning("Points update failed: %s", exc)
            self._notify("Error", "Could not update your points.")
            return
        logger.info("Points updated: %d -> %d", current, current + points)

    def reset_quiz(self) -> None:
        self._generation += 1
        self.state = QuizState(start_time=self.context.clock())

    def set_smart_selection(self, enabled: bool) -> None:
        self.smart_selection = enabled

    # ---------- derived values ----------

    def manual_stats(self) -> QuizStats:
        state = self.state
        answered = len(state.answers)
        return QuizStats(
            total_questions=len(state.questions),
            correct_answers=state.score,
            incorrect_answers=answered - state.score,
            percentage=round(state.score / answered * 100) if answered else 0,
            average_time_per_question=_average_time(state.answers),
            questions_answered=answered,
            points_earned=state.score * self.context.config.points_per_correct,
            remaining_questions_in_topic=_remaining(state),
            original_failed_questions_count=len(state.question_ids),
            questions_still_failed=_still_failed(state.answers),
        )

    def live_stats(self) -> QuizStats:
        """Running stats; the average time is wall-clock time since the last timer reset."""
        stats = self.manual_stats()
        answered = stats.questions_answered
        elapsed = round(self.context.clock() - self.state.start_time)
        average = round(elapsed / answered) if answered else 0
        return replace(stats, average_time_per_question=average)

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        state = self.state
        if 0 <= state.current_index < len(state.questions):
            return state.questions[state.current_index]
        return None

    @property
    def is_finished(self) -> bool:
        state = self.state
        return (
            state.current_index >= len(state.questions) - 1
            and len(state.answers) == len(state.questions)
        )

    @property
    def progress(self) -> float:
        total = len(self.state.questions)
        return (self.state.current_index + 1) / total * 100 if total else 0.0

    @property
    def answer_options(self) -> list[tuple[str, str]]:
        question = self.current_question
        return question.options() if question else []
