"""Question batch selection: explicit ids, failed questions, smart or random."""
import logging
import random

from quiz_academy.models import (
    MODE_PRACTICE,
    InsufficientFilters,
    NoQuestionsAvailable,
    SelectionMetadata,
    SelectionResult,
)

logger = logging.getLogger(__name__)


def fisher_yates(items, rng=random) -> list:
    """Return a uniformly shuffled copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def get_specific_questions(store, question_ids, rng=random) -> SelectionResult:
    questions = store.fetch_questions_by_ids(list(question_ids))
    return SelectionResult(
        questions=fisher_yates(questions, rng),
        metadata=SelectionMetadata(
            failed_questions=len(questions),
            total_available=len(questions),
            selection_method="specific",
        ),
    )


def get_failed_questions(store, user_id, limit=10, rng=random) -> SelectionResult:
    failed_ids = store.failed_question_ids(user_id)
    if not failed_ids:
        raise NoQuestionsAvailable("No failed questions to practise")
    picked = fisher_yates(failed_ids, rng)[:limit]
    questions = store.fetch_questions_by_ids(picked)
    return SelectionResult(
        questions=fisher_yates(questions, rng),
        metadata=SelectionMetadata(
            failed_questions=len(questions),
            total_available=len(failed_ids),
            selection_method="specific",
        ),
    )


def get_random_questions(store, academy_id, topic_id, limit=10, rng=random) -> SelectionResult:
    questions = store.fetch_questions(academy_id, topic_id, limit)
    return SelectionResult(
        questions=fisher_yates(questions, rng),
        metadata=SelectionMetadata(total_available=len(questions), selection_method="random"),
    )


def get_smart_questions(store, user_id, academy_id, topic_id, limit=10, config=None, rng=random,
                        notify=None) -> SelectionResult:
    """Priority selection, falling back to random selection on any store error."""
    days_threshold = config.days_threshold if config else 30
    include_failed = config.include_failed if config else True
    try:
        ranked = store.fetch_smart_questions(
            user_id, academy_id, topic_id, limit, days_threshold, include_failed
        )
    except Exception as exc:
        logger.warning("Smart selection failed, using random questions: %s", exc)
        if notify:
            notify("Error", "Smart selection failed. Using random questions.")
        return get_random_questions(store, academy_id, topic_id, limit, rng)

    levels = [level for _, level in ranked]
    metadata = SelectionMetadata(
        failed_questions=levels.count(1),
        never_answered=levels.count(2),
        old_correct=levels.count(3),
        total_available=len(ranked),
        selection_method="smart",
    )
    logger.debug("Smart selection: %s", metadata)
    return SelectionResult(questions=fisher_yates([q for q, _ in ranked], rng), metadata=metadata)


def select_questions(
    store,
    user_id,
    mode,
    academy_id=None,
    topic_id=None,
    question_ids=None,
    limit=10,
    smart=True,
    config=None,
    rng=random,
    notify=None,
) -> SelectionResult:
    """Pick the batch for one quiz.

    An explicit id list wins. Practice without both filters serves the user's
    failed questions. With both filters, smart or random selection applies.
    """
    if question_ids:
        return get_specific_questions(store, question_ids, rng)
    if mode == MODE_PRACTICE and not (academy_id and topic_id):
        return get_failed_questions(store, user_id, limit, rng)
    if academy_id and topic_id:
        if smart:
            return get_smart_questions(
                store, user_id, academy_id, topic_id, limit, config, rng, notify
            )
        return get_random_questions(store, academy_id, topic_id, limit, rng)
    raise InsufficientFilters("Test mode needs both an academy and a topic")
