# medintake/intake/schema.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from medintake.intake.stages import InputSource, TurnRole


class TurnModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: TurnRole
    content: str


class PendingInputModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    text: str = ""
    source: InputSource = InputSource.NONE
    focus_requested: bool = False


class IntakeSnapshot(BaseModel):
    """
    Everything a presentation layer needs to render one intake session.

    `current_step` is total_steps + 1 once the flow is complete;
    `display_step` is clamped to total_steps for a "Step X of N" badge.
    """

    session_id: str
    messages: List[TurnModel] = Field(default_factory=list)
    current_step: int = Field(..., ge=1)
    display_step: int = Field(..., ge=1)
    total_steps: int = Field(..., ge=1)
    progress: int = Field(..., ge=0, le=100)
    is_complete: bool = False
    is_processing: bool = False
    is_capturing: bool = False
    pending_input: PendingInputModel = Field(default_factory=PendingInputModel)
    last_error: Optional[str] = None
    last_capture_error: Optional[str] = None
