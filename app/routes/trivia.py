from fastapi import APIRouter, Depends, HTTPException, Query, status
import logging

from app.dependencies import get_pipeline
from app.schemas.trivia import EntryYearResponse, QuestionBatchRequest, QuestionBatchResponse
from app.services.constants import TRIVIA_CATEGORIES, TRIVIA_CATEGORY_SET
from app.services.pipeline import QuestionSourcingPipeline
from app.services.question_bank import estimate_entry_year

router = APIRouter(prefix="/trivia", tags=["Trivia"])

logger = logging.getLogger(__name__)


@router.post("/questions", response_model=QuestionBatchResponse, status_code=status.HTTP_200_OK)
async def generate_questions(
    request: QuestionBatchRequest,
    pipeline: QuestionSourcingPipeline = Depends(get_pipeline),
):
    logger.info(f"[trivia] Requested {request.count} {request.difficulty} questions")
    response = await pipeline.handle_request(request)
    logger.info(f"[trivia] Served {len(response.questions)} questions from {response.source}")
    return response


@router.get("/categories")
async def list_categories():
    return {"category_set": TRIVIA_CATEGORY_SET, "categories": list(TRIVIA_CATEGORIES)}


@router.get("/entry-year", response_model=EntryYearResponse)
async def get_entry_year(
    score: int = Query(..., ge=0),
    total: int = Query(..., ge=1),
):
    if score > total:
        raise HTTPException(status_code=400, detail="score cannot exceed total")
    return EntryYearResponse(score=score, total=total, entry_year=estimate_entry_year(score, total))
