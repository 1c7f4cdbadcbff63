# medintake/intake/stages.py
from enum import Enum


class TurnRole(str, Enum):
    SUBJECT = "subject"
    ASSISTANT = "assistant"


class InputSource(str, Enum):
    NONE = "none"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    EDITING = "editing"
