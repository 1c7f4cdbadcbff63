# medintake/intake/__init__.py
from .capture import InputCaptureSource, SimulatedCaptureSource, build_capture_source
from .engine import DialogueEngine, EngineConfig
from .errors import CaptureError, GenerationError, IntakeError
from .generator import (
    GeneratedReply,
    LLMResponseGenerator,
    ResponseGenerator,
    ScriptedResponseGenerator,
    build_response_generator,
)
from .progress import ProgressTracker
from .schema import IntakeSnapshot, PendingInputModel, TurnModel
from .stages import InputSource, TurnRole
from .state import IntakeTurn, MessageLog, PendingInput, PendingInputSnapshot

__all__ = [
    "CaptureError",
    "DialogueEngine",
    "EngineConfig",
    "GeneratedReply",
    "GenerationError",
    "InputCaptureSource",
    "InputSource",
    "IntakeError",
    "IntakeSnapshot",
    "IntakeTurn",
    "LLMResponseGenerator",
    "MessageLog",
    "PendingInput",
    "PendingInputModel",
    "PendingInputSnapshot",
    "ProgressTracker",
    "ResponseGenerator",
    "ScriptedResponseGenerator",
    "SimulatedCaptureSource",
    "TurnModel",
    "TurnRole",
    "build_capture_source",
    "build_response_generator",
]
