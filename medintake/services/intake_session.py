# medintake/services/intake_session.py
from __future__ import annotations

import asyncio
from typing import Callable, Dict, Optional, Sequence

from medintake.config import Settings, get_settings
from medintake.intake.capture import InputCaptureSource, build_capture_source
from medintake.intake.engine import DialogueEngine, EngineConfig
from medintake.intake.generator import ResponseGenerator, build_response_generator
from medintake.intake.state import IntakeTurn
from medintake.logging_config import get_logger
from medintake.services.transcript_store import TranscriptStore

logger = get_logger(__name__)


class IntakeSessionService:
    """
    Service that coordinates:
      - creating one DialogueEngine per intake session
      - looking sessions up by id for the API layer
      - handing completed transcripts to the TranscriptStore
      - evicting finished sessions once max_sessions is reached
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        generator: Optional[ResponseGenerator] = None,
        capture_source_factory: Optional[Callable[[], InputCaptureSource]] = None,
        store: Optional[TranscriptStore] = None,
    ):
        settings = settings or get_settings()
        self.engine_config = EngineConfig.from_settings(settings)
        self.max_sessions = settings.max_sessions
        self.generator = generator or build_response_generator(settings)
        self.capture_source_factory = capture_source_factory or (
            lambda: build_capture_source(settings)
        )
        if store is None and settings.persist_transcripts:
            store = TranscriptStore()
        self.store = store

        self._sessions: Dict[str, DialogueEngine] = {}
        # save task -> session id
        self._saves: Dict[asyncio.Task, str] = {}
        self._save_locks: Dict[str, asyncio.Lock] = {}

    def start_session(self) -> DialogueEngine:
        """
        Start a new intake session, pre-seeded with the opening message.
        """
        if len(self._sessions) >= self.max_sessions:
            self._evict_finished()

        engine = DialogueEngine(
            generator=self.generator,
            capture_source=self.capture_source_factory(),
            config=self.engine_config,
        )
        if self.store is not None:
            engine.add_settled_callback(self._save_if_complete)

        self._sessions[engine.session_id] = engine
        logger.info("Intake session started", extra={"session_id": engine.session_id})
        return engine

    def get_session(self, session_id: str) -> Optional[DialogueEngine]:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        engine = self._sessions.pop(session_id, None)
        if engine is None:
            return False

        engine.cancel_capture()
        self._save_locks.pop(session_id, None)
        logger.info(
            "Intake session ended",
            extra={"session_id": session_id, "complete": engine.is_complete()},
        )
        return True

    def __len__(self) -> int:
        return len(self._sessions)

    async def flush_saves(self) -> None:
        """Wait for every transcript save scheduled so far."""
        while self._saves:
            await asyncio.gather(*list(self._saves))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _evict_finished(self) -> None:
        saving = set(self._saves.values())
        # dicts keep insertion order, so this walks oldest first
        for session_id, engine in list(self._sessions.items()):
            if len(self._sessions) < self.max_sessions:
                break
            if (
                engine.is_complete()
                and not engine.is_processing()
                and session_id not in saving
            ):
                del self._sessions[session_id]
                self._save_locks.pop(session_id, None)
                logger.info("Finished intake session evicted", extra={"session_id": session_id})

        if len(self._sessions) >= self.max_sessions:
            logger.warning(
                "Session limit reached with no finished session to evict",
                extra={"sessions": len(self._sessions), "max_sessions": self.max_sessions},
            )

    def _save_if_complete(self, engine: DialogueEngine) -> None:
        # Only finished intakes are stored; later closing exchanges are appended.
        if not engine.is_complete():
            return

        task = asyncio.get_running_loop().create_task(
            self._save(engine.session_id, engine.total_steps, engine.messages())
        )
        self._saves[task] = engine.session_id
        task.add_done_callback(lambda t: self._saves.pop(t, None))

    async def _save(
        self, session_id: str, total_steps: int, turns: Sequence[IntakeTurn]
    ) -> None:
        lock = self._save_locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            try:
                await asyncio.to_thread(
                    self.store.save_turns, session_id, total_steps, turns, True
                )
            except Exception:
                logger.exception(
                    "Transcript save failed", extra={"session_id": session_id}
                )
