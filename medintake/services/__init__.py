# medintake/services/__init__.py
from .intake_session import IntakeSessionService
from .transcript_store import TranscriptStore, init_db

__all__ = ["IntakeSessionService", "TranscriptStore", "init_db"]
