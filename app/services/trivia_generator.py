import json
import logging
import random
import re
import time
from typing import Any, Callable, List, NamedTuple, Optional

from app.schemas.trivia import TriviaQuestion
from app.services.constants import ANCHOR_YEAR, EPOCH_YEAR, TRIVIA_CATEGORIES, YEAR_DECREMENT
from app.services.errors import ConfigurationError, ProviderError
from app.services.prompts import TRIVIA_GENERATION_SYSTEM_PROMPT, build_batch_prompt
from app.services.validator import validate_batch

logger = logging.getLogger(__name__)


class QuestionSlot(NamedTuple):
    category: str
    year: int


class GenerationResult(NamedTuple):
    questions: List[TriviaQuestion]
    generation_time_ms: float


def plan_question_slots(count: int, difficulty: str) -> List[QuestionSlot]:
    """
    Spread `count` questions over the categories, stepping back in time per question.

    Years before EPOCH_YEAR are skipped, so the plan can be shorter than `count`.
    """
    decrement = YEAR_DECREMENT.get(difficulty, YEAR_DECREMENT["medium"])
    per_category = count // len(TRIVIA_CATEGORIES)
    remainder = count % len(TRIVIA_CATEGORIES)

    slots = []
    for index, category in enumerate(TRIVIA_CATEGORIES):
        category_count = per_category + 1 if index < remainder else per_category
        for step in range(category_count):
            year = ANCHOR_YEAR - step * decrement
            if year < EPOCH_YEAR:
                continue
            slots.append(QuestionSlot(category, year))
    return slots


def random_question_slots(count: int) -> List[QuestionSlot]:
    """ Uniformly random (category, year) pairs over the whole valid year range. """
    return [
        QuestionSlot(random.choice(TRIVIA_CATEGORIES), random.randint(EPOCH_YEAR, ANCHOR_YEAR))
        for _ in range(count)
    ]


def _fenced_json_block(text: str) -> Optional[str]:
    match = re.search(r"```json\s*\n([\s\S]*?)\n?```", text)
    return match.group(1) if match else None


def _fenced_block(text: str) -> Optional[str]:
    match = re.search(r"```([\s\S]*?)```", text)
    return match.group(1) if match else None


def _bare_array(text: str) -> Optional[str]:
    """ First span starting at `[{` that decodes as a complete JSON array. """
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\[\s*\{", text):
        try:
            value, end = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, list):
            return text[match.start():end]
    return None


# Tried in order; the first strategy whose match parses as JSON wins.
EXTRACTION_STRATEGIES: List[Callable[[str], Optional[str]]] = [
    _fenced_json_block,
    _fenced_block,
    _bare_array,
]


def extract_json_payload(text: str) -> Optional[Any]:
    """
    Pull the JSON payload out of a free-form model reply.

    Returns:
        The parsed JSON value, or None when no strategy yields parseable JSON.
    """
    if not text:
        return None
    for strategy in EXTRACTION_STRATEGIES:
        candidate = strategy(text)
        if candidate is None:
            continue
        cleaned = candidate.replace("```", "").strip()
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:].strip()
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.debug(f"Strategy {strategy.__name__} matched but JSON was invalid: {e}")
    return None


def parse_trivia_response(text: str, slots: List[QuestionSlot], difficulty: str) -> List[TriviaQuestion]:
    """ Parse a reply into validated questions. Never raises on malformed output. """
    payload = extract_json_payload(text)
    if payload is None:
        logger.warning("No parseable JSON found in provider response")
        logger.debug(f"Raw response: {text}")
        return []
    if not isinstance(payload, list):
        logger.warning(f"Provider response is not a list of questions: {type(payload).__name__}")
        return []
    return validate_batch(payload, difficulty, [slot.year for slot in slots])


async def _request_batch(client, slots: List[QuestionSlot], difficulty: str, supplementary: bool) -> List[TriviaQuestion]:
    if not slots:
        return []
    prompt = build_batch_prompt(slots, difficulty, supplementary=supplementary)
    label = "supplementary" if supplementary else "primary"
    try:
        raw_response = await client.complete(prompt, system=TRIVIA_GENERATION_SYSTEM_PROMPT)
    except ProviderError as e:
        logger.error(f"[{label} batch] Provider error: {e}")
        return []
    except Exception as e:
        logger.error(f"[{label} batch] Unexpected error calling provider: {e}", exc_info=True)
        return []

    questions = parse_trivia_response(raw_response, slots, difficulty)
    logger.info(f"[{label} batch] {len(questions)}/{len(slots)} questions passed validation")
    return questions


async def fetch_trivia_batch(client, count: int, difficulty: str) -> GenerationResult:
    """
    Generate up to `count` questions with one batched call plus at most one shortfall call.

    Args:
        client: GenerativeClient (or anything with an async `complete` and an `api_key`).
        count: Number of questions wanted.
        difficulty: "easy", "medium" or "hard".

    Returns:
        GenerationResult with the shuffled questions (possibly fewer than `count`)
        and the wall time spent in milliseconds.

    Raises:
        ConfigurationError: if no client or API key is configured.
    """
    if client is None or not getattr(client, "api_key", None):
        raise ConfigurationError("Generative provider API key is required")

    started = time.perf_counter()

    slots = plan_question_slots(count, difficulty)
    questions = await _request_batch(client, slots, difficulty, supplementary=False)

    if len(questions) < count:
        shortfall = count - len(questions)
        logger.info(f"Requesting {shortfall} supplementary questions to cover the shortfall")
        questions.extend(
            await _request_batch(client, random_question_slots(shortfall), difficulty, supplementary=True)
        )

    unique = list({question.id: question for question in questions}.values())
    random.shuffle(unique)

    generation_time_ms = (time.perf_counter() - started) * 1000
    logger.info(f"Generated {min(len(unique), count)}/{count} {difficulty} questions in {generation_time_ms:.0f}ms")
    return GenerationResult(unique[:count], generation_time_ms)
