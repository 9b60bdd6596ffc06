import logging

from fastapi import Request

from app.cache.redis import RedisClient
from app.services.llm_client import GenerativeClient
from app.services.pipeline import QuestionSourcingPipeline
from app.services.question_store import QuestionStore

logger = logging.getLogger(__name__)


def build_pipeline() -> QuestionSourcingPipeline:
    """ Build the pipeline from the environment; tiers without configuration stay None. """
    generator = GenerativeClient.from_env("gemini")
    store = QuestionStore.from_env()
    count_cache = RedisClient.from_env()

    logger.info(
        f"Question pipeline tiers: generative={'on' if generator else 'off'}, "
        f"cache={'on' if store else 'off'}, count_cache={'on' if count_cache else 'off'}"
    )
    return QuestionSourcingPipeline(generator=generator, store=store, count_cache=count_cache)


def get_pipeline(request: Request) -> QuestionSourcingPipeline:
    return request.app.state.pipeline
