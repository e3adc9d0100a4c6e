from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel


class GeneratedWord(BaseModel):
    original: str
    translation: str


class FallbackWord(GeneratedWord):
    pass


class VocabularyWord(BaseModel):
    original: str
    translation: str
    learned: bool = False
    proficiency_level: str
    learning_language: str
    native_language: str
    batch_number: int
    source: str = "ai"
    model_config = {"from_attributes": True}


class LearnerProfile(BaseModel):
    learner_id: int
    learning_language: str
    native_language: str = "English"
    proficiency_level: str = "A1"


class QuotaStatus(BaseModel):
    request_count: int
    remaining_estimate: int
    exhausted: bool
    reset_at: datetime


class BatchOutcome(BaseModel):
    status: Literal["completed", "partial", "in_progress", "no_words_available"]
    batch_number: int = 0
    generated_count: int = 0
    duplicates_skipped: int = 0
    persistence_errors: int = 0
    final_batch_size: int = 0
    is_complete: bool = False
    generation_method: Literal["ai", "fallback"] = "ai"
    quota_status: Optional[QuotaStatus] = None
    message: str = ""


class BatchValidation(BaseModel):
    batch_number: int
    is_valid: bool
    expected_words: int
    actual_words: int
    words_needed: int


class BatchStatus(BaseModel):
    batch_number: int
    validation: BatchValidation
    exists: bool
    ready_for_display: bool


class BatchSummary(BaseModel):
    level: str
    total_batches_checked: int
    complete_batches: int
    incomplete_batches: int
    batches: list[BatchStatus]
    ready_batches: list[int]
    needs_attention: list[dict]


class FallbackCacheEntryOut(BaseModel):
    key: str
    word_count: int
    generated_at: datetime
    expires_at: datetime


class GenerationStatusOut(BaseModel):
    quota: QuotaStatus
    fallback_cache_size: int
    fallback_cache_entries: list[FallbackCacheEntryOut]
    active_generations: int


class LearnerCreate(BaseModel):
    learning_language: str
    native_language: str = "English"
    proficiency_level: str = "A1"


class LearnerOut(LearnerCreate):
    id: int
    model_config = {"from_attributes": True}
