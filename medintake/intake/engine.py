# medintake/intake/engine.py
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from medintake.config import DEFAULT_OPENING_MESSAGE, Settings
from medintake.intake.capture import InputCaptureSource
from medintake.intake.errors import CaptureError, GenerationError
from medintake.intake.generator import GeneratedReply, ResponseGenerator
from medintake.intake.progress import ProgressTracker
from medintake.intake.schema import IntakeSnapshot, PendingInputModel, TurnModel
from medintake.intake.stages import InputSource, TurnRole
from medintake.intake.state import IntakeTurn, MessageLog, PendingInput, PendingInputSnapshot
from medintake.logging_config import get_logger

logger = get_logger(__name__)

SettledCallback = Callable[["DialogueEngine"], None]


@dataclass
class EngineConfig:
    total_steps: int = 4
    opening_message: str = DEFAULT_OPENING_MESSAGE
    # None disables the timeout
    generation_timeout_seconds: Optional[float] = 30.0

    def __post_init__(self) -> None:
        if self.total_steps < 1:
            raise ValueError("total_steps must be at least 1")
        if not self.opening_message.strip():
            raise ValueError("opening_message must not be blank")

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            total_steps=settings.total_steps,
            opening_message=settings.opening_message,
            generation_timeout_seconds=settings.generation_timeout_seconds,
        )


class DialogueEngine:
    """
    DialogueEngine runs one fixed-length intake conversation.

    It owns the transcript (MessageLog), the current step and the
    processing flag, and holds the session's single PendingInput.

    States are (step, processing):
      - (s, False) --commit-->          (s, True)
      - (s, True)  --generator result--> (s + 1, False), where s + 1 past
        total_steps is the terminal "completed" step
      - (s, True)  --generator failure--> (s, False), subject turn kept

    Commits while processing, while capturing, or with blank text are
    ignored. Once completed, each commit still gets the generator's closing
    reply and the step stays put.

    All methods must be called from the event loop the engine runs on;
    commit and start_capture schedule their collaborator call as a task and
    return immediately.
    """

    def __init__(
        self,
        generator: ResponseGenerator,
        capture_source: Optional[InputCaptureSource] = None,
        config: Optional[EngineConfig] = None,
        session_id: Optional[str] = None,
        on_settled: Optional[List[SettledCallback]] = None,
    ):
        self.config = config or EngineConfig()
        self.session_id = session_id or str(uuid.uuid4())

        self._generator = generator
        self._capture_source = capture_source
        self._tracker = ProgressTracker(self.config.total_steps)

        self._log = MessageLog()
        self._pending = PendingInput()
        self._step = 1
        self._processing = False

        self._generation_task: Optional[asyncio.Task] = None
        self._capture_task: Optional[asyncio.Task] = None
        self._last_error: Optional[GenerationError] = None
        self._last_capture_error: Optional[CaptureError] = None
        self._on_settled: List[SettledCallback] = list(on_settled or [])

        self._log.append(TurnRole.ASSISTANT, self.config.opening_message)

    # ------------------------------------------------------------------
    # Read-only queries
    # ------------------------------------------------------------------

    @property
    def total_steps(self) -> int:
        return self.config.total_steps

    def messages(self) -> Tuple[IntakeTurn, ...]:
        return self._log.turns()

    def current_step(self) -> int:
        return self._step

    def progress(self) -> int:
        return self._tracker.progress(self._step)

    def is_complete(self) -> bool:
        return self._tracker.is_complete(self._step)

    def is_processing(self) -> bool:
        return self._processing

    def is_capturing(self) -> bool:
        return self._pending.source == InputSource.CAPTURING

    def pending_input(self) -> PendingInputSnapshot:
        return self._pending.snapshot()

    def last_error(self) -> Optional[GenerationError]:
        return self._last_error

    def last_capture_error(self) -> Optional[CaptureError]:
        return self._last_capture_error

    def snapshot(self) -> IntakeSnapshot:
        return IntakeSnapshot(
            session_id=self.session_id,
            messages=[TurnModel.model_validate(t) for t in self._log],
            current_step=self._step,
            display_step=self._tracker.display_step(self._step),
            total_steps=self.total_steps,
            progress=self.progress(),
            is_complete=self.is_complete(),
            is_processing=self._processing,
            is_capturing=self.is_capturing(),
            pending_input=PendingInputModel.model_validate(self._pending.snapshot()),
            last_error=str(self._last_error) if self._last_error else None,
            last_capture_error=(
                str(self._last_capture_error) if self._last_capture_error else None
            ),
        )

    def add_settled_callback(self, callback: SettledCallback) -> None:
        """Run `callback(engine)` after every successful exchange."""
        self._on_settled.append(callback)

    async def wait_idle(self) -> None:
        """Wait for the outstanding generator and capture calls, if any."""
        tasks = [
            t for t in (self._generation_task, self._capture_task)
            if t is not None and not t.done()
        ]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(self, text: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Log `text` (default: the pending draft) as the subject's answer to
        the current step and ask the generator for the reply.

        Returns the task running the generator, or None when the commit was
        rejected.
        """
        if text is None:
            text = self._pending.text

        reason = self._commit_rejection(text)
        if reason is not None:
            logger.debug(
                "Commit rejected: %s", reason,
                extra={"session_id": self.session_id, "step": self._step},
            )
            return None

        loop = asyncio.get_running_loop()
        step = self._step

        self._log.append(TurnRole.SUBJECT, text)
        self._pending.clear()
        self._processing = True
        self._last_error = None

        logger.info(
            "Subject turn committed",
            extra={"session_id": self.session_id, "step": step},
        )
        self._generation_task = loop.create_task(self._run_generator(step, text))
        return self._generation_task

    def _commit_rejection(self, text: str) -> Optional[str]:
        if self._processing:
            return "a reply is still being generated"
        if self._pending.source == InputSource.CAPTURING:
            return "input capture in progress"
        if not text.strip():
            return "empty text"
        return None

    def _expected_next_step(self, step: int) -> int:
        return min(step + 1, self._tracker.completed_step)

    async def _run_generator(self, step: int, text: str) -> None:
        timeout = self.config.generation_timeout_seconds
        try:
            reply = await asyncio.wait_for(
                self._generator.generate(step, text), timeout=timeout
            )
            self._check_reply(step, reply)
        except asyncio.TimeoutError:
            self._generation_failed(
                GenerationError(f"No reply within {timeout}s", step=step)
            )
            return
        except asyncio.CancelledError:
            self._generation_failed(GenerationError("Generation cancelled", step=step))
            # Propagate only when this task itself is being cancelled; a
            # generator that cancels its own work is an ordinary failure.
            if asyncio.current_task().cancelling():
                raise
            return
        except GenerationError as e:
            self._generation_failed(e)
            return
        except Exception as e:
            logger.exception(
                "Response generator raised unexpectedly",
                extra={"session_id": self.session_id, "step": step},
            )
            self._generation_failed(
                GenerationError(f"{type(e).__name__}: {e}", step=step)
            )
            return

        self._apply_reply(step, reply)

    def _check_reply(self, step: int, reply: GeneratedReply) -> None:
        if not reply.text.strip():
            raise GenerationError("Generator returned an empty reply", step=step)
        expected = self._expected_next_step(step)
        if reply.next_step != expected:
            raise GenerationError(
                f"Generator moved step {step} to {reply.next_step}, expected {expected}",
                step=step,
            )

    def _apply_reply(self, step: int, reply: GeneratedReply) -> None:
        self._log.append(TurnRole.ASSISTANT, reply.text)
        self._step = reply.next_step
        self._processing = False

        logger.info(
            "Exchange settled",
            extra={
                "session_id": self.session_id,
                "step": step,
                "next_step": self._step,
                "progress": self.progress(),
                "complete": self.is_complete(),
            },
        )

        for callback in list(self._on_settled):
            try:
                callback(self)
            except Exception:
                logger.exception(
                    "Settled callback failed",
                    extra={"session_id": self.session_id, "step": self._step},
                )

    def _generation_failed(self, error: GenerationError) -> None:
        self._processing = False
        self._last_error = error
        logger.warning(
            "Generation failed: %s", error,
            extra={"session_id": self.session_id, "step": self._step},
        )

    # ------------------------------------------------------------------
    # Capture and editing
    # ------------------------------------------------------------------

    def start_capture(self) -> Optional[asyncio.Task]:
        """
        Start capturing the subject's answer from the capture source.

        Returns the capture task, or None when there is no source, a reply
        is being generated, or the draft is not empty/idle.
        """
        if self._capture_source is None or self._processing:
            return None

        loop = asyncio.get_running_loop()
        if not self._pending.begin_capture():
            return None

        self._last_capture_error = None
        self._capture_task = loop.create_task(self._run_capture(self._step))
        return self._capture_task

    async def _run_capture(self, step: int) -> None:
        try:
            text = await self._capture_source.begin(step)
            if not text.strip():
                raise CaptureError("Nothing was recognized")
        except asyncio.CancelledError:
            # cancel_capture() has already reset the draft
            raise
        except CaptureError as e:
            self._capture_failed(e)
            return
        except Exception as e:
            logger.exception(
                "Capture source raised unexpectedly",
                extra={"session_id": self.session_id, "step": step},
            )
            self._capture_failed(CaptureError(f"{type(e).__name__}: {e}"))
            return

        if self._pending.capture_result(text):
            logger.info(
                "Input captured",
                extra={"session_id": self.session_id, "step": step},
            )

    def _capture_failed(self, error: CaptureError) -> None:
        self._pending.cancel_capture()
        self._last_capture_error = error
        logger.warning(
            "Capture failed: %s", error,
            extra={"session_id": self.session_id, "step": self._step},
        )

    def cancel_capture(self) -> bool:
        if not self._pending.cancel_capture():
            return False

        task, self._capture_task = self._capture_task, None
        if task is not None and not task.done():
            task.cancel()
        if self._capture_source is not None:
            self._capture_source.cancel()
        return True

    def begin_edit(self) -> bool:
        return self._pending.begin_edit()

    def update_text(self, text: str) -> bool:
        return self._pending.update_text(text)

    def end_edit(self) -> bool:
        return self._pending.end_edit()

    def clear_pending(self) -> bool:
        if self._pending.source == InputSource.CAPTURING:
            return self.cancel_capture()
        self._pending.clear()
        return True
