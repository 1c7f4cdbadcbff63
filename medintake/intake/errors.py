# medintake/intake/errors.py
from __future__ import annotations


class IntakeError(Exception):
    """Base class for recoverable intake failures."""


class CaptureError(IntakeError):
    """The input capture source failed or was unavailable."""


class GenerationError(IntakeError):
    """
    The response generator failed, timed out, or returned a reply that
    breaks its contract. `step` is the step the exchange was attempted at.
    """

    def __init__(self, message: str, step: int | None = None):
        super().__init__(message)
        self.step = step
