"""Data classes for the quiz domain model."""
from dataclasses import dataclass, field
from typing import Optional

OPTION_LABELS = ("A", "B", "C", "D")

MODE_TEST = "test"
MODE_PRACTICE = "practice"
MODES = (MODE_TEST, MODE_PRACTICE)


class QuizError(Exception):
    """Base class for quiz errors."""


class NoQuestionsAvailable(QuizError):
    """No questions match the requested mode and filters."""


class InsufficientFilters(QuizError):
    """Not enough filters were given to select a question batch."""


class QuestionLoadError(QuizError):
    """The question store failed while loading a batch."""


class InvalidQuestion(QuizError):
    """A question record breaks the option/solution invariant."""


class SessionNotFound(QuizError):
    """The session does not exist or is already completed."""


class InvalidStatsPayload(QuizError):
    """A remote stats payload does not have the expected shape."""


def normalize_label(label: str) -> str:
    return (label or "").strip().upper()


@dataclass(frozen=True)
class QuizQuestion:
    id: str
    prompt: str
    option_a: str
    option_b: str
    correct_label: str
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    topic_id: Optional[str] = None
    academy_id: Optional[str] = None
    part: Optional[str] = None

    def __post_init__(self):
        for label, text in (("A", self.option_a), ("B", self.option_b)):
            if not (text and text.strip()):
                raise InvalidQuestion(f"Question {self.id}: option {label} is required")
        labels = [label for label, _ in self.options()]
        if normalize_label(self.correct_label) not in labels:
            raise InvalidQuestion(
                f"Question {self.id}: solution {self.correct_label!r} is not one of {labels}"
            )

    def options(self) -> list[tuple[str, str]]:
        """Present (label, text) pairs, skipping blank optional options."""
        texts = (self.option_a, self.option_b, self.option_c, self.option_d)
        return [
            (label, text)
            for label, text in zip(OPTION_LABELS, texts)
            if text and text.strip()
        ]

    def is_correct(self, selected_label: str) -> bool:
        return normalize_label(selected_label) == normalize_label(self.correct_label)

    @classmethod
    def from_row(cls, row) -> "QuizQuestion":
        return cls(
            id=row["id"],
            prompt=row["prompt"],
            option_a=row["option_a"],
            option_b=row["option_b"],
            option_c=row["option_c"],
            option_d=row["option_d"],
            correct_label=row["correct_label"],
            topic_id=row["topic_id"],
            academy_id=row["academy_id"],
            part=row["part"],
        )


@dataclass(frozen=True)
class AnswerRecord:
    question_id: str
    selected_label: str
    correct_label: str
    is_correct: bool
    time_spent: int = 0


@dataclass(frozen=True)
class QuizStats:
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    percentage: int
    average_time_per_question: int
    questions_answered: int
    points_earned: int
    remaining_questions_in_topic: int = 0
    original_failed_questions_count: int = 0
    questions_still_failed: tuple[str, ...] = ()


@dataclass(frozen=True)
class SelectionMetadata:
    failed_questions: int = 0
    never_answered: int = 0
    old_correct: int = 0
    total_available: int = 0
    selection_method: str = "random"


@dataclass
class SelectionResult:
    questions: list[QuizQuestion]
    metadata: SelectionMetadata = field(default_factory=SelectionMetadata)


@dataclass
class UserStats:
    total_sessions: int = 0
    completed_sessions: int = 0
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    overall_accuracy_percentage: float = 0.0
    current_failed_questions: int = 0
    best_session_score_percentage: float = 0.0
    last_activity: Optional[str] = None
    points: int = 0


@dataclass
class TopicStats:
    topic_id: str
    topic_name: str
    academy_id: str
    academy_name: str
    answered: int = 0
    correct: int = 0
    incorrect: int = 0
    percentage: int = 0
    total_in_topic: int = 0
    pending: int = 0
    progress: int = 0
    attempts: int = 0
    mastery: str = "Necesita Práctica"
    last_answer: Optional[str] = None
    failed_question_ids: list[str] = field(default_factory=list)


@dataclass
class RankingEntry:
    position: int
    user_id: str
    username: str
    points: int = 0
    completed_sessions: int = 0
    accuracy: float = 0.0
