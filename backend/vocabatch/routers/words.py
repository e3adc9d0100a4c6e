from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from vocabatch.database import get_db
from vocabatch.models import Learner
from vocabatch.schemas import (
    BatchOutcome,
    BatchSummary,
    BatchValidation,
    GenerationStatusOut,
    LearnerCreate,
    LearnerOut,
    LearnerProfile,
)
from vocabatch.services.batch_integrity import summarize_batches, validate_batch_integrity
from vocabatch.services.generation_service import GenerationService
from vocabatch.services.word_cache import WordCache, batch_key, batch_stats_key

router = APIRouter(prefix="/api", tags=["words"])

OUTCOME_STATUS_CODES = {"in_progress": 409, "no_words_available": 503}
BATCH_CACHE_TTL = 900


def get_generation_service(request: Request) -> GenerationService:
    return request.app.state.generation_service


def get_word_cache(request: Request) -> WordCache:
    return request.app.state.word_cache


def _get_learner(db: Session, learner_id: int) -> LearnerProfile:
    learner = db.query(Learner).filter(Learner.id == learner_id).first()
    if not learner:
        raise HTTPException(status_code=404, detail="Learner not found")
    return LearnerProfile(
        learner_id=learner.id,
        learning_language=learner.learning_language,
        native_language=learner.native_language,
        proficiency_level=learner.proficiency_level,
    )


@router.post("/learners", response_model=LearnerOut)
def create_learner(body: LearnerCreate, db: Session = Depends(get_db)):
    learner = Learner(**body.model_dump())
    db.add(learner)
    db.commit()
    db.refresh(learner)
    return learner


@router.post("/learners/{learner_id}/batches/generate", response_model=BatchOutcome)
async def generate_batch(
    learner_id: int,
    db: Session = Depends(get_db),
    service: GenerationService = Depends(get_generation_service),
):
    profile = _get_learner(db, learner_id)
    outcome = await service.generate_next_batch(profile)
    status_code = OUTCOME_STATUS_CODES.get(outcome.status)
    if status_code:
        return JSONResponse(status_code=status_code, content=outcome.model_dump(mode="json"))
    return outcome


@router.get("/learners/{learner_id}/batches/{batch_number}/validate", response_model=BatchValidation)
async def validate_batch(
    learner_id: int,
    batch_number: int,
    auto_complete: bool = False,
    db: Session = Depends(get_db),
    service: GenerationService = Depends(get_generation_service),
    cache: WordCache = Depends(get_word_cache),
):
    profile = _get_learner(db, learner_id)
    if not service.is_valid_batch_number(batch_number):
        raise HTTPException(status_code=404, detail="Batch not found")
    level = profile.proficiency_level
    key = batch_key(learner_id, level, batch_number)

    count = cache.get(key)
    if count is None:
        count = await service.repository.count(
            learner_id, level, profile.learning_language, batch_number=batch_number,
        )
        cache.set(key, count, BATCH_CACHE_TTL)

    validation = validate_batch_integrity(count, batch_number, service.config.words_per_batch)
    if not validation.is_valid and auto_complete:
        outcome = await service.generate_next_batch(profile, batch_number=batch_number)
        # in_progress and no_words_available runs leave the counted validation standing
        if outcome.status in ("completed", "partial"):
            validation = validate_batch_integrity(
                outcome.final_batch_size, outcome.batch_number, service.config.words_per_batch,
            )
    return validation


@router.get("/learners/{learner_id}/batches", response_model=BatchSummary)
async def batch_summary(
    learner_id: int,
    max_batches: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    service: GenerationService = Depends(get_generation_service),
    cache: WordCache = Depends(get_word_cache),
):
    profile = _get_learner(db, learner_id)
    level = profile.proficiency_level
    key = batch_stats_key(learner_id, level)

    counts = cache.get(key)
    if counts is None:
        counts = await service.repository.count_by_batch(learner_id, level, profile.learning_language)
        cache.set(key, counts, BATCH_CACHE_TTL)

    return summarize_batches(level, counts, max_batches, service.config.words_per_batch)


@router.get("/generation/status", response_model=GenerationStatusOut)
def generation_status(service: GenerationService = Depends(get_generation_service)):
    return service.status()
