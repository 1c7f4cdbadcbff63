# medintake/api/schemas.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from medintake.intake.schema import IntakeSnapshot


class CommitRequest(BaseModel):
    # None commits the session's pending draft
    text: Optional[str] = None


class PendingTextRequest(BaseModel):
    text: str


class OperationResponse(BaseModel):
    """
    Result of a state-changing call. Rejected operations are not errors:
    `accepted` is False and `session` shows the unchanged state.
    """

    accepted: bool
    session: IntakeSnapshot
