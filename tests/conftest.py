"""
Shared fixtures: fake collaborators whose results the test releases by hand,
so the order of awaits is deterministic.
"""
from __future__ import annotations

import asyncio
from typing import List, Tuple

import pytest

from medintake.config import Settings
from medintake.intake import (
    CaptureError,
    DialogueEngine,
    EngineConfig,
    GeneratedReply,
    InputCaptureSource,
    ResponseGenerator,
    ScriptedResponseGenerator,
)

OPENING = "Welcome. What brings you in today?"
CLOSING = "Thanks, you're all set."
PROMPTS = ["How long has this been going on?", "Any medications?", "Anything else?"]


async def _next_future(pending: List[asyncio.Future]) -> asyncio.Future:
    # Give the engine's task a few loop turns to reach the collaborator.
    for _ in range(100):
        while pending:
            fut = pending.pop(0)
            # skip calls whose waiter was cancelled
            if not fut.done():
                return fut
        await asyncio.sleep(0)
    raise AssertionError("collaborator was never called")


class ControlledGenerator(ResponseGenerator):
    """Each generate() call parks on a future the test resolves or fails."""

    def __init__(self) -> None:
        self.calls: List[Tuple[int, str]] = []
        self._pending: List[asyncio.Future] = []

    async def generate(self, step: int, subject_text: str) -> GeneratedReply:
        fut = asyncio.get_running_loop().create_future()
        self.calls.append((step, subject_text))
        self._pending.append(fut)
        return await fut

    async def resolve(self, text: str, next_step: int) -> None:
        fut = await _next_future(self._pending)
        fut.set_result(GeneratedReply(text=text, next_step=next_step))

    async def fail(self, exc: BaseException) -> None:
        fut = await _next_future(self._pending)
        fut.set_exception(exc)


class ControlledCaptureSource(InputCaptureSource):
    def __init__(self) -> None:
        self.steps: List[int] = []
        self.cancel_calls = 0
        self._pending: List[asyncio.Future] = []

    async def begin(self, step: int) -> str:
        fut = asyncio.get_running_loop().create_future()
        self.steps.append(step)
        self._pending.append(fut)
        return await fut

    async def deliver(self, text: str) -> None:
        fut = await _next_future(self._pending)
        fut.set_result(text)

    async def fail(self, message: str = "microphone unavailable") -> None:
        fut = await _next_future(self._pending)
        fut.set_exception(CaptureError(message))

    async def started(self) -> None:
        """Wait until begin() has been entered, without resolving it."""
        fut = await _next_future(self._pending)
        self._pending.insert(0, fut)

    def cancel(self) -> None:
        self.cancel_calls += 1


@pytest.fixture
def settings() -> Settings:
    return Settings(
        total_steps=4,
        opening_message=OPENING,
        closing_message=CLOSING,
        step_prompts=PROMPTS,
        thinking_delay_seconds=0,
        capture_delay_seconds=0,
        simulated_responses=["headache", "three days", "ibuprofen", "tired"],
        persist_transcripts=False,
    )


@pytest.fixture
def scripted_generator() -> ScriptedResponseGenerator:
    return ScriptedResponseGenerator(
        total_steps=4, step_prompts=PROMPTS, closing_message=CLOSING
    )


@pytest.fixture
def controlled_generator() -> ControlledGenerator:
    return ControlledGenerator()


@pytest.fixture
def capture_source() -> ControlledCaptureSource:
    return ControlledCaptureSource()


@pytest.fixture
def engine(scripted_generator, capture_source) -> DialogueEngine:
    return DialogueEngine(
        generator=scripted_generator,
        capture_source=capture_source,
        config=EngineConfig(total_steps=4, opening_message=OPENING),
    )


@pytest.fixture
def controlled_engine(controlled_generator, capture_source) -> DialogueEngine:
    return DialogueEngine(
        generator=controlled_generator,
        capture_source=capture_source,
        config=EngineConfig(total_steps=4, opening_message=OPENING),
    )
