# medintake/intake/generator.py
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from medintake.config import Settings
from medintake.intake.errors import GenerationError
from medintake.llm import LLMClient, LLMError, OpenAILLMClient
from medintake.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GeneratedReply:
    text: str
    next_step: int


class ResponseGenerator(ABC):
    """
    Produces the assistant's reply to a committed subject answer.

    Given the step the answer belongs to and the answer itself, return the
    assistant text and the step to move to, or raise GenerationError.
    One result per call; no partial or streamed output.
    """

    @abstractmethod
    async def generate(self, step: int, subject_text: str) -> GeneratedReply:
        ...


class ScriptedResponseGenerator(ResponseGenerator):
    """
    Deterministic reference generator.

    The reply to step s (s < N) is step_prompts[s - 1]. The reply to step N,
    and to every commit after completion, is the closing message. An
    optional delay stands in for backend "thinking" time.
    """

    def __init__(
        self,
        total_steps: int,
        step_prompts: Sequence[str],
        closing_message: str,
        delay: float = 0.0,
    ):
        if len(step_prompts) < total_steps - 1:
            raise ValueError(
                f"{total_steps} steps need {total_steps - 1} prompts, "
                f"got {len(step_prompts)}"
            )
        self.total_steps = total_steps
        self.step_prompts: List[str] = list(step_prompts[: total_steps - 1])
        self.closing_message = closing_message
        self.delay = delay

    def reply_for(self, step: int) -> str:
        if step >= self.total_steps:
            return self.closing_message
        return self.step_prompts[step - 1]

    async def generate(self, step: int, subject_text: str) -> GeneratedReply:
        if self.delay:
            await asyncio.sleep(self.delay)
        return GeneratedReply(
            text=self.reply_for(step),
            next_step=min(step + 1, self.total_steps + 1),
        )


class LLMResponseGenerator(ScriptedResponseGenerator):
    """
    Lets an LLM acknowledge the subject's answer and deliver the scripted
    next prompt in its own words.

    The script still decides what is asked and when the flow ends; the
    closing message is returned verbatim so repeated commits after
    completion always get the same reply.
    """

    SYSTEM_PROMPT = (
        "You are a friendly assistant collecting a patient's intake before a "
        "doctor's consultation.\n\n"
        "RULES:\n"
        "- Briefly acknowledge the patient's last answer.\n"
        "- Then ask exactly the next question you are given, in your own words.\n"
        "- Do not diagnose, interpret symptoms, or give medical advice.\n"
        "- Keep it to 1-2 short sentences."
    )

    def __init__(
        self,
        llm_client: LLMClient,
        total_steps: int,
        step_prompts: Sequence[str],
        closing_message: str,
        temperature: float = 0.3,
    ):
        super().__init__(total_steps, step_prompts, closing_message)
        self.llm_client = llm_client
        self.temperature = temperature

    def _build_messages(self, step: int, subject_text: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Patient's answer: {subject_text}\n\n"
                    f"Next question to ask: {self.reply_for(step)}"
                ),
            },
        ]

    async def generate(self, step: int, subject_text: str) -> GeneratedReply:
        next_step = min(step + 1, self.total_steps + 1)
        if step >= self.total_steps:
            return GeneratedReply(text=self.closing_message, next_step=next_step)

        messages = self._build_messages(step, subject_text)
        try:
            raw = await asyncio.to_thread(
                self.llm_client.chat, messages, temperature=self.temperature
            )
        except LLMError as e:
            raise GenerationError(str(e), step=step) from e

        text = raw.strip()
        if not text:
            raise GenerationError("LLM returned an empty reply", step=step)
        return GeneratedReply(text=text, next_step=next_step)


def build_response_generator(
    settings: Settings,
    llm_client: Optional[LLMClient] = None,
) -> ResponseGenerator:
    """Pick the generator backend named by settings.generator_backend."""
    if settings.generator_backend == "llm":
        if llm_client is None:
            llm_client = OpenAILLMClient()
        logger.info("Using LLM response generator", extra={"model": settings.llm_model})
        return LLMResponseGenerator(
            llm_client=llm_client,
            total_steps=settings.total_steps,
            step_prompts=settings.step_prompts,
            closing_message=settings.closing_message,
        )

    return ScriptedResponseGenerator(
        total_steps=settings.total_steps,
        step_prompts=settings.step_prompts,
        closing_message=settings.closing_message,
        delay=settings.thinking_delay_seconds,
    )
