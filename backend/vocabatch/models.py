from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, Boolean, UniqueConstraint
)
from sqlalchemy.orm import relationship

from vocabatch.database import Base


def word_key(original: str) -> str:
    """Uniqueness key for a word's original form (trimmed, case-folded)."""
    return (original or "").strip().casefold()


class Learner(Base):
    __tablename__ = "learners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    learning_language = Column(String(40), nullable=False)
    native_language = Column(String(40), nullable=False, default="English")
    proficiency_level = Column(String(2), nullable=False, default="A1")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    words = relationship("Word", back_populates="learner")


class Word(Base):
    __tablename__ = "words"
    __table_args__ = (
        UniqueConstraint(
            "learner_id", "learning_language", "proficiency_level", "original_key",
            name="uq_word_scope_original",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    learner_id = Column(Integer, ForeignKey("learners.id"), nullable=False, index=True)
    original = Column(Text, nullable=False)
    original_key = Column(Text, nullable=False)     # trimmed + case-folded original
    translation = Column(Text, nullable=False)
    learned = Column(Boolean, default=False, nullable=False)
    proficiency_level = Column(String(2), nullable=False)
    learning_language = Column(String(40), nullable=False)
    native_language = Column(String(40), nullable=False)
    batch_number = Column(Integer, nullable=False, index=True)
    source = Column(String(20), default="ai")  # ai/fallback
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    learner = relationship("Learner", back_populates="words")
