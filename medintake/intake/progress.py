# medintake/intake/progress.py
from __future__ import annotations


class ProgressTracker:
    """
    Read-only projection of the current step onto a completion percentage.

    Steps run 1..total_steps; the terminal "completed" step is
    total_steps + 1. Progress is never stored, only derived.
    """

    def __init__(self, total_steps: int):
        if total_steps < 1:
            raise ValueError("total_steps must be at least 1")
        self.total_steps = total_steps

    @property
    def completed_step(self) -> int:
        return self.total_steps + 1

    def _check(self, step: int) -> None:
        if not 1 <= step <= self.completed_step:
            raise ValueError(
                f"Step {step} outside 1..{self.completed_step}"
            )

    def is_complete(self, step: int) -> bool:
        self._check(step)
        return step == self.completed_step

    def progress(self, step: int) -> int:
        """
        round((step - 1) / N * 100), rounding halves up, and 100 once complete.
        """
        if self.is_complete(step):
            return 100
        return int((step - 1) * 100 / self.total_steps + 0.5)

    def display_step(self, step: int) -> int:
        """Value for a "Step X of N" badge."""
        self._check(step)
        return min(step, self.total_steps)
