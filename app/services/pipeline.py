"""
Question sourcing pipeline.

Tries the generative provider, the persistent question cache and the static
bank in a fixed order and always returns a batch. Tier failures are logged and
turned into a fall-through; writes to the cache happen in detached tasks so a
slow or broken store never delays the response.
"""
import asyncio
import logging
import random
from typing import Awaitable, List, Optional, Set

from app.cache.question_counts import get_question_count_cached, invalidate_question_count
from app.schemas.trivia import (
    BatchMetrics,
    QuestionBatchRequest,
    QuestionBatchResponse,
    QuestionBatchResult,
    TriviaQuestion,
)
from app.services.constants import (
    HARDCODED_BATCH_SIZE,
    SOURCE_POLICY_CACHE_FIRST,
    SOURCE_POLICY_GENERATE_FIRST,
    TRIVIA_CACHE_WATERMARK,
    TRIVIA_MAX_REPLENISH_BATCH,
    TRIVIA_SOURCE_POLICY,
)
from app.services.errors import ConfigurationError, StoreError
from app.services.question_bank import select_static_questions
from app.services.trivia_generator import GenerationResult, fetch_trivia_batch

logger = logging.getLogger(__name__)

SOURCE_POLICIES = (SOURCE_POLICY_GENERATE_FIRST, SOURCE_POLICY_CACHE_FIRST)


def _unique_by_id(questions: List[TriviaQuestion]) -> List[TriviaQuestion]:
    return list({question.id: question for question in questions}.values())


class QuestionSourcingPipeline:
    """
    Orchestrates the generative, cache and static tiers.

    Args:
        generator: GenerativeClient, or None when no provider key is configured.
        store: QuestionStore, or None when no database is configured.
        count_cache: RedisClient used for the replenishment watermark check, optional.
        policy: "generate_first" (default) or "cache_first".
        watermark: Minimum cached rows per difficulty before replenishment stops.
        max_replenish_batch: Upper bound on questions generated per replenishment.
    """

    def __init__(
        self,
        generator=None,
        store=None,
        count_cache=None,
        policy: str = TRIVIA_SOURCE_POLICY,
        watermark: int = TRIVIA_CACHE_WATERMARK,
        max_replenish_batch: int = TRIVIA_MAX_REPLENISH_BATCH,
    ):
        if policy not in SOURCE_POLICIES:
            raise ConfigurationError(f"Unknown source policy '{policy}', expected one of {SOURCE_POLICIES}")
        self.generator = generator
        self.store = store
        self.count_cache = count_cache
        self.policy = policy
        self.watermark = watermark
        self.max_replenish_batch = max_replenish_batch
        self._background_tasks: Set[asyncio.Task] = set()

    # Public API

    async def source_questions(self, count: int, difficulty: str) -> QuestionBatchResult:
        """ Return up to `count` questions and the tier that produced them. Never raises for tier failures. """
        if self.policy == SOURCE_POLICY_CACHE_FIRST:
            return await self._source_cache_first(count, difficulty)
        return await self._source_generate_first(count, difficulty)

    async def handle_request(self, request: QuestionBatchRequest) -> QuestionBatchResponse:
        """ Entry point for callers: the tiered pipeline wrapped in a last-resort safety net. """
        try:
            result = await self.source_questions(request.count, request.difficulty)
        except Exception as e:
            logger.error(f"Question pipeline failed unexpectedly, serving hardcoded batch: {e}", exc_info=True)
            return QuestionBatchResponse(
                questions=select_static_questions(HARDCODED_BATCH_SIZE, request.difficulty),
                source="hardcoded",
                metrics=BatchMetrics(fallback=True, error=True),
            )

        return QuestionBatchResponse(
            questions=result.questions,
            source=result.source,
            metrics=BatchMetrics(
                generation_time_ms=result.generation_time_ms,
                from_database=result.source == "cached",
                fallback=result.source == "static",
            ),
        )

    async def drain_background_tasks(self) -> None:
        """ Wait for pending cache writes and replenishments (shutdown and tests). """
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    @property
    def pending_background_tasks(self) -> int:
        return len(self._background_tasks)

    # Tier orderings

    async def _source_generate_first(self, count: int, difficulty: str) -> QuestionBatchResult:
        generated = await self._try_generate(count, difficulty)
        if generated and generated.questions:
            self._schedule(self._persist(generated.questions, difficulty), "persist generated questions")
            return QuestionBatchResult(
                questions=generated.questions,
                source="generated",
                generation_time_ms=generated.generation_time_ms,
            )

        cached = await self._try_cache(count, difficulty)
        if cached:
            random.shuffle(cached)
            return QuestionBatchResult(questions=cached[:count], source="cached")

        return self._static(count, difficulty)

    async def _source_cache_first(self, count: int, difficulty: str) -> QuestionBatchResult:
        cached = await self._try_cache(count, difficulty)
        if len(cached) >= count:
            random.shuffle(cached)
            if self.generator is not None and self.store is not None:
                self._schedule(self._replenish(difficulty), f"replenish {difficulty} questions")
            return QuestionBatchResult(questions=cached[:count], source="cached")

        logger.info(f"Not enough {difficulty} questions in cache ({len(cached)}/{count}), generating the rest")
        generated = await self._try_generate(count - len(cached), difficulty)
        if generated and generated.questions:
            self._schedule(self._persist(generated.questions, difficulty), "persist generated questions")
            combined = _unique_by_id(cached + generated.questions)[:count]
            random.shuffle(combined)
            return QuestionBatchResult(
                questions=combined,
                source="generated",
                generation_time_ms=generated.generation_time_ms,
            )

        if cached:
            random.shuffle(cached)
            return QuestionBatchResult(questions=cached, source="cached")

        return self._static(count, difficulty)

    # Tiers

    async def _try_generate(self, count: int, difficulty: str) -> Optional[GenerationResult]:
        if self.generator is None:
            logger.info("Generative tier not configured, skipping")
            return None
        try:
            result = await fetch_trivia_batch(self.generator, count, difficulty)
        except ConfigurationError as e:
            logger.warning(f"Generative tier misconfigured, skipping: {e}")
            return None
        except Exception as e:
            logger.error(f"Generative tier failed: {e}", exc_info=True)
            return None

        if not result.questions:
            logger.warning(f"Generative tier produced no {difficulty} questions")
        return result

    async def _try_cache(self, count: int, difficulty: str) -> List[TriviaQuestion]:
        if self.store is None:
            logger.info("Question cache not configured, skipping")
            return []
        try:
            questions = await asyncio.to_thread(self.store.query, count, difficulty)
        except StoreError as e:
            logger.error(f"Question cache query failed: {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected question cache error: {e}", exc_info=True)
            return []

        logger.info(f"Question cache returned {len(questions)}/{count} {difficulty} questions")
        return _unique_by_id(questions)

    def _static(self, count: int, difficulty: str) -> QuestionBatchResult:
        logger.info(f"Falling back to the static question bank for {count} {difficulty} questions")
        return QuestionBatchResult(
            questions=select_static_questions(count, difficulty),
            source="static",
        )

    # Background work

    def _schedule(self, coro: Awaitable[None], label: str) -> None:
        task = asyncio.create_task(coro, name=label)
        self._background_tasks.add(task)
        task.add_done_callback(self._handle_background_completion)

    def _handle_background_completion(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        try:
            task.result()
        except asyncio.CancelledError:
            logger.info(f"Background task '{task.get_name()}' was cancelled")
        except Exception:
            logger.exception(f"Background task '{task.get_name()}' failed")

    async def _persist(self, questions: List[TriviaQuestion], difficulty: str) -> None:
        if self.store is None or not questions:
            return
        try:
            await asyncio.to_thread(self.store.insert_batch, questions, difficulty)
        except StoreError as e:
            logger.error(f"Failed to store generated questions: {e}")
            return
        await asyncio.to_thread(invalidate_question_count, difficulty, self.count_cache)

    async def _replenish(self, difficulty: str) -> None:
        try:
            current = await asyncio.to_thread(
                get_question_count_cached, self.store, difficulty, self.count_cache
            )
        except StoreError as e:
            logger.error(f"Replenishment skipped, could not count cached questions: {e}")
            return

        if current >= self.watermark:
            return

        needed = min(self.watermark - current, self.max_replenish_batch)
        logger.info(f"Replenishing {needed} {difficulty} questions ({current}/{self.watermark} cached)")
        generated = await self._try_generate(needed, difficulty)
        if generated and generated.questions:
            await self._persist(generated.questions, difficulty)
