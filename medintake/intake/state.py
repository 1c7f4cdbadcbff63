# medintake/intake/state.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple

from medintake.intake.stages import InputSource, TurnRole


@dataclass(frozen=True)
class IntakeTurn:
    role: TurnRole
    content: str


class MessageLog:
    """
    Append-only transcript of one intake session.

    Turns are immutable and kept in append order; there is no way to
    remove or replace one.
    """

    def __init__(self) -> None:
        self._turns: List[IntakeTurn] = []

    def append(self, role: TurnRole, content: str) -> IntakeTurn:
        if not content:
            raise ValueError("turn content must not be empty")
        turn = IntakeTurn(role=TurnRole(role), content=content)
        self._turns.append(turn)
        return turn

    def turns(self) -> Tuple[IntakeTurn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[IntakeTurn]:
        return iter(tuple(self._turns))


@dataclass(frozen=True)
class PendingInputSnapshot:
    text: str
    source: InputSource
    focus_requested: bool = False


@dataclass
class PendingInput:
    """
    The single not-yet-committed response of a session.

    Every transition returns True when applied and False when the current
    source does not allow it; rejected transitions leave the draft untouched.

      none      --begin_capture-->  capturing
      capturing --capture_result--> captured
      capturing --cancel_capture--> none
      captured  --begin_edit-->     editing
      editing   --end_edit-->       captured
      any       --clear-->          none
    """

    text: str = ""
    source: InputSource = InputSource.NONE
    # Raised by begin_edit so the presentation layer can focus its editor.
    focus_requested: bool = False

    def begin_capture(self) -> bool:
        if self.source != InputSource.NONE:
            return False
        self.text = ""
        self.source = InputSource.CAPTURING
        return True

    def capture_result(self, text: str) -> bool:
        if self.source != InputSource.CAPTURING:
            # late result of a cancelled capture
            return False
        self.text = text
        self.source = InputSource.CAPTURED
        return True

    def cancel_capture(self) -> bool:
        if self.source != InputSource.CAPTURING:
            return False
        self.clear()
        return True

    def begin_edit(self) -> bool:
        if self.source != InputSource.CAPTURED:
            return False
        self.source = InputSource.EDITING
        self.focus_requested = True
        return True

    def update_text(self, text: str) -> bool:
        """
        Replace the draft text verbatim.

        While editing the source stays `editing`. Outside an edit this is
        direct entry: a draft with non-blank content counts as captured, a
        blank one drops back to `none`.
        """
        if self.source == InputSource.CAPTURING:
            return False
        self.text = text
        if self.source != InputSource.EDITING:
            self.source = InputSource.CAPTURED if self.has_content() else InputSource.NONE
        return True

    def end_edit(self) -> bool:
        if self.source != InputSource.EDITING:
            return False
        self.source = InputSource.CAPTURED
        self.focus_requested = False
        return True

    def clear(self) -> None:
        self.text = ""
        self.source = InputSource.NONE
        self.focus_requested = False

    def has_content(self) -> bool:
        return bool(self.text.strip())

    def snapshot(self) -> PendingInputSnapshot:
        return PendingInputSnapshot(
            text=self.text,
            source=self.source,
            focus_requested=self.focus_requested,
        )
