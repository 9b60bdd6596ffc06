from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

from app.services.constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_QUESTION_COUNT,
    MAX_QUESTIONS_PER_REQUEST,
)

Difficulty = Literal["easy", "medium", "hard"]
QuestionSource = Literal["generated", "cached", "static"]


class TriviaQuestion(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    category: str
    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=4, max_length=4)
    correct_answer: int = Field(alias="correctAnswer", ge=0, le=3)
    year_indicator: int = Field(alias="yearIndicator")
    difficulty: Difficulty


class QuestionBatchRequest(BaseModel):
    count: int = Field(default=DEFAULT_QUESTION_COUNT, ge=1, le=MAX_QUESTIONS_PER_REQUEST)
    difficulty: Difficulty = DEFAULT_DIFFICULTY


class QuestionBatchResult(BaseModel):
    questions: List[TriviaQuestion]
    source: QuestionSource
    generation_time_ms: Optional[float] = None


class BatchMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generation_time_ms: Optional[float] = Field(default=None, alias="generationTimeMs")
    from_database: Optional[bool] = Field(default=None, alias="fromDatabase")
    fallback: Optional[bool] = None
    error: Optional[bool] = None


class QuestionBatchResponse(BaseModel):
    questions: List[TriviaQuestion]
    source: Literal["generated", "cached", "static", "hardcoded"]
    metrics: BatchMetrics = Field(default_factory=BatchMetrics)


class EntryYearResponse(BaseModel):
    score: int
    total: int
    entry_year: int = Field(alias="entryYear")

    model_config = ConfigDict(populate_by_name=True)
