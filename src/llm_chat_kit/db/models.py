from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from .session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromptRecord(Base):
    __tablename__ = "prompts"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    prompt = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
