# medintake/services/transcript_store.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from medintake.db import Base, SessionLocal, engine as default_engine
from medintake.intake.engine import DialogueEngine
from medintake.intake.stages import TurnRole
from medintake.intake.state import IntakeTurn
from medintake.logging_config import get_logger
from medintake.models import Encounter, Utterance, utcnow

logger = get_logger(__name__)


def init_db(bind: Engine = default_engine) -> None:
    """
    Create all tables. Call this once at startup.
    """
    Base.metadata.create_all(bind=bind)


class TranscriptStore:
    """
    Writes intake transcripts to the `encounters` / `utterances` tables.

    Saving is incremental: only turns past the ones already stored are
    inserted, so calling save() after every exchange is cheap and never
    rewrites earlier rows.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def save(self, engine: DialogueEngine) -> int:
        """
        Persist the engine's transcript. Returns the number of new turns.
        """
        return self.save_turns(
            engine.session_id,
            engine.total_steps,
            engine.messages(),
            complete=engine.is_complete(),
        )

    def save_turns(
        self,
        session_id: str,
        total_steps: int,
        turns: Sequence[IntakeTurn],
        complete: bool = False,
    ) -> int:
        """
        Persist a transcript taken from an engine snapshot.

        Touches no engine state, so it can run in a worker thread.
        """
        with self._session() as db:
            encounter = db.get(Encounter, session_id)
            if encounter is None:
                encounter = Encounter(id=session_id, total_steps=total_steps)
                db.add(encounter)
                db.flush()

            stored = db.scalar(
                select(func.count())
                .select_from(Utterance)
                .where(Utterance.encounter_id == session_id)
            ) or 0

            for position, turn in enumerate(turns[stored:], start=stored):
                db.add(
                    Utterance(
                        encounter_id=session_id,
                        position=position,
                        speaker=turn.role.value,
                        text=turn.content,
                    )
                )

            if complete and encounter.completed_at is None:
                encounter.completed_at = utcnow()

        added = max(len(turns) - stored, 0)
        logger.info(
            "Transcript saved",
            extra={"session_id": session_id, "new_turns": added},
        )
        return added

    def load_transcript(self, encounter_id: str) -> List[IntakeTurn]:
        with self._session() as db:
            stmt = (
                select(Utterance)
                .where(Utterance.encounter_id == encounter_id)
                .order_by(Utterance.position.asc())
            )
            return [
                IntakeTurn(role=TurnRole(u.speaker), content=u.text)
                for u in db.scalars(stmt)
            ]

    def is_completed(self, encounter_id: str) -> bool:
        with self._session() as db:
            encounter = db.get(Encounter, encounter_id)
            return encounter is not None and encounter.completed_at is not None
