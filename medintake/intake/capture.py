# medintake/intake/capture.py
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import List, Sequence

from medintake.config import Settings
from medintake.logging_config import get_logger

logger = get_logger(__name__)


class InputCaptureSource(ABC):
    """
    Asynchronous producer of candidate subject text, e.g. a speech
    recognizer. `begin` returns the recognized text or raises CaptureError.
    """

    @abstractmethod
    async def begin(self, step: int) -> str:
        ...

    def cancel(self) -> None:
        """Release whatever `begin` is holding (microphone, stream...)."""


class SimulatedCaptureSource(InputCaptureSource):
    """
    Stand-in for speech recognition: after `delay` seconds it "hears" the
    canned response for the current step, or nothing past the end of the list.
    """

    def __init__(self, responses: Sequence[str], delay: float = 0.0):
        self.responses: List[str] = list(responses)
        self.delay = delay
        self.cancelled = 0

    async def begin(self, step: int) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if 1 <= step <= len(self.responses):
            return self.responses[step - 1]
        return ""

    def cancel(self) -> None:
        self.cancelled += 1
        logger.debug("Simulated capture cancelled")


def build_capture_source(settings: Settings) -> InputCaptureSource:
    return SimulatedCaptureSource(
        responses=settings.simulated_responses,
        delay=settings.capture_delay_seconds,
    )
