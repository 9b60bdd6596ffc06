import json
import logging

from app.services.constants import QUESTION_COUNT_CACHE_TTL

logger = logging.getLogger(__name__)


def _count_key(difficulty: str) -> str:
    return f"trivia:count:{difficulty}"


def get_question_count_cached(store, difficulty: str, cache=None, ttl: int = QUESTION_COUNT_CACHE_TTL) -> int:
    """ Cached row count for a difficulty, falling back to the store on a miss or Redis error. """
    key = _count_key(difficulty)

    if cache is not None:
        try:
            cached = cache.get(key)
            if cached is not None:
                return int(json.loads(cached))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Corrupted Redis value for key {key}: {e}")

    count = store.count(difficulty)

    if cache is not None:
        cache.set(key, count, ttl=ttl)
    return count


def invalidate_question_count(difficulty: str, cache=None) -> None:
    if cache is not None:
        cache.delete(_count_key(difficulty))
