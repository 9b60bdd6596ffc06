"""
Structural validation and normalization of candidate trivia questions.

Candidates mostly come from free-form model output, so a rejected candidate is
a normal outcome: ``validate_question`` reports it through ``ValidationResult``
instead of raising.
"""
import logging
import re
import uuid
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from pydantic import ValidationError

from app.schemas.trivia import TriviaQuestion
from app.services.constants import OPTIONS_PER_QUESTION, TRIVIA_CATEGORIES
from app.services.errors import QuestionValidationError

logger = logging.getLogger(__name__)

QUESTION_KEYS = ("question", "questionText", "question_text")
ANSWER_KEYS = ("correctAnswer", "correctAnswerIndex", "correct_answer", "correct_answer_index")
YEAR_KEYS = ("year", "yearIndicator", "year_indicator")


class ValidationResult(NamedTuple):
    question: Optional[TriviaQuestion] = None
    error: Optional[QuestionValidationError] = None

    @property
    def ok(self) -> bool:
        return self.question is not None


def _reject(reason: str) -> ValidationResult:
    return ValidationResult(error=QuestionValidationError(reason))


def _first_present(candidate: dict, keys: Sequence[str]) -> Any:
    for key in keys:
        if key in candidate and candidate[key] is not None:
            return candidate[key]
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def normalize_category(value: Any) -> Optional[str]:
    """ Map an external category string onto the configured set, or None if unknown. """
    if not isinstance(value, str):
        return None
    normalized = re.sub(r"[\s_]+", "-", value.strip().lower())
    return normalized if normalized in TRIVIA_CATEGORIES else None


def make_question_id(category: str, year: int, taken_ids: Optional[Set[str]] = None) -> str:
    taken_ids = taken_ids or set()
    while True:
        question_id = f"{category}-{year}-{uuid.uuid4().hex[:8]}"
        if question_id not in taken_ids:
            return question_id


def _check_fields(question_text: Any, options: Any, answer: Any, raw_category: Any) -> Tuple[Optional[str], Optional[str]]:
    """ Run checks 1-4 in order. Returns (failure reason, normalized category). """
    if not isinstance(question_text, str) or not question_text.strip():
        return "question text is missing or empty", None

    if not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
        return f"options must be a list of exactly {OPTIONS_PER_QUESTION} entries", None
    if not all(isinstance(option, str) and option.strip() for option in options):
        return "options must be non-empty strings", None
    if len(set(options)) != len(options):
        return "options must be distinct", None

    if not _is_int(answer) or not 0 <= answer < OPTIONS_PER_QUESTION:
        return f"correct answer index {answer!r} is not an integer in [0, 3]", None

    category = normalize_category(raw_category)
    if category is None:
        return f"unknown category {raw_category!r}", None
    return None, category


def validate_question(
    candidate: Any,
    difficulty: str,
    fallback_year: Optional[int] = None,
    taken_ids: Optional[Set[str]] = None,
) -> ValidationResult:
    """
    Validate one candidate and build a canonical TriviaQuestion from it.

    Args:
        candidate: Raw dict parsed from model output, or an existing TriviaQuestion.
        difficulty: Difficulty assigned to newly built questions.
        fallback_year: Year used when the candidate carries none (the slot's target year).
        taken_ids: Ids already used in the batch; the new id avoids them.

    Returns:
        ValidationResult holding either the question or the first failed check.
    """
    if isinstance(candidate, TriviaQuestion):
        # Existing records keep their id and fields; they are only re-checked.
        reason, category = _check_fields(
            candidate.question, candidate.options, candidate.correct_answer, candidate.category
        )
        if reason is None and category != candidate.category:
            reason = f"category {candidate.category!r} is not in canonical form"
        if reason is not None:
            return _reject(reason)
        return ValidationResult(question=candidate)

    if not isinstance(candidate, dict):
        return _reject(f"candidate is {type(candidate).__name__}, expected an object")

    question_text = _first_present(candidate, QUESTION_KEYS)
    options = candidate.get("options")
    answer = _first_present(candidate, ANSWER_KEYS)
    reason, category = _check_fields(question_text, options, answer, candidate.get("category"))
    if reason is not None:
        return _reject(reason)

    year = _first_present(candidate, YEAR_KEYS)
    if not _is_int(year):
        year = fallback_year
    if not _is_int(year):
        return _reject("no year indicator and no target year to substitute")

    try:
        question = TriviaQuestion(
            id=make_question_id(category, year, taken_ids),
            category=category,
            question=question_text.strip(),
            options=list(options),
            correct_answer=answer,
            year_indicator=year,
            difficulty=difficulty,
        )
    except ValidationError as e:
        return _reject(f"schema validation failed: {e.errors()[0].get('msg')}")
    return ValidationResult(question=question)


def validate_batch(
    items: Iterable[Any],
    difficulty: str,
    fallback_years: Optional[Sequence[int]] = None,
) -> List[TriviaQuestion]:
    """ Validate every item, dropping invalid ones. Ids in the result are unique. """
    fallback_years = fallback_years or []
    valid = []
    taken_ids: Set[str] = set()
    for i, item in enumerate(items):
        fallback_year = fallback_years[i] if i < len(fallback_years) else None
        result = validate_question(item, difficulty, fallback_year, taken_ids)
        if not result.ok:
            logger.warning(f"Dropping invalid trivia question at index {i}: {result.error.reason}")
            continue
        if result.question.id in taken_ids:
            logger.warning(f"Dropping duplicate trivia question id {result.question.id}")
            continue
        taken_ids.add(result.question.id)
        valid.append(result.question)
    return valid
