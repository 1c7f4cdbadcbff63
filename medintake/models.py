# medintake/models.py
from datetime import datetime, timezone

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from medintake.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Encounter(Base):
    """One intake session; `id` is the engine's session id."""

    __tablename__ = "encounters"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    utterances: Mapped[list["Utterance"]] = relationship(
        "Utterance",
        back_populates="encounter",
        cascade="all, delete-orphan",
        order_by="Utterance.position",
    )


class Utterance(Base):
    __tablename__ = "utterances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    encounter_id: Mapped[str] = mapped_column(
        String, ForeignKey("encounters.id", ondelete="CASCADE"), nullable=False
    )
    # 0-based index in the transcript
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    speaker: Mapped[str] = mapped_column(String, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    ts: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "speaker IN ('subject', 'assistant')",
            name="ck_utterances_speaker_valid",
        ),
        UniqueConstraint(
            "encounter_id", "position", name="uq_utterances_encounter_position"
        ),
    )

    encounter: Mapped[Encounter] = relationship(
        "Encounter", back_populates="utterances"
    )
