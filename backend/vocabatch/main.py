from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vocabatch.config import settings
from vocabatch.database import SessionLocal, init_db
from vocabatch.routers import words
from vocabatch.services.fallback_words import FallbackWordProvider
from vocabatch.services.generation_client import GenerationClient
from vocabatch.services.generation_service import GenerationConfig, GenerationService
from vocabatch.services.llm import LiteLLMProvider
from vocabatch.services.quota_tracker import QuotaTracker
from vocabatch.services.word_cache import WordCache
from vocabatch.services.word_repository import SqlWordRepository


def build_generation_service(word_cache: WordCache) -> GenerationService:
    config = GenerationConfig.from_settings(settings)
    quota = QuotaTracker(settings.free_tier_limit, timedelta(hours=settings.quota_window_hours))
    client = GenerationClient(LiteLLMProvider(), quota, settings.exclusion_list_limit)
    fallback = FallbackWordProvider(client, generation_batch_size=config.generation_batch_size)
    return GenerationService(
        SqlWordRepository(SessionLocal),
        client,
        fallback,
        quota,
        cache_hook=word_cache,
        config=config,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.word_cache = WordCache()
    app.state.generation_service = build_generation_service(app.state.word_cache)
    yield


app = FastAPI(title="Vocabulary Batch Generation API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(words.router)


@app.get("/")
def root():
    return {"app": "vocabatch", "version": "0.1.0"}
