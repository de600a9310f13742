"""Shared step machine for the multi-step wizards."""
from __future__ import annotations

from enum import IntEnum
import logging
from typing import Callable, Dict, Generic, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=IntEnum)

Guard = Callable[[], Optional[str]]


class StepBlocked(Exception):
    """Raised when a step's guard refuses to let the wizard advance."""

    def __init__(self, step: IntEnum, reason: str) -> None:
        super().__init__(reason)
        self.step = step
        self.reason = reason


class StepMachine(Generic[S]):
    """Ordered steps with per-step guards and leave hooks.

    A guard returns ``None`` when the step may be left forwards, or a short
    reason otherwise. Leave hooks run on every transition out of their step.
    """

    def __init__(self, steps: Sequence[S], *, terminal: Optional[S] = None, initial: Optional[S] = None) -> None:
        if not steps:
            raise ValueError("a step machine needs at least one step")
        self.steps: List[S] = list(steps)
        self.terminal: S = terminal if terminal is not None else self.steps[-1]
        self.initial: S = initial if initial is not None else self.steps[0]
        self._step: S = self.initial
        self._guards: Dict[S, Guard] = {}
        self._leave_hooks: Dict[S, List[Callable[[], None]]] = {}

    @property
    def step(self) -> S:
        return self._step

    @property
    def index(self) -> int:
        return self.steps.index(self._step)

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(self.steps) - 1

    def guard(self, step: S, check: Guard) -> None:
        self._guards[step] = check

    def on_leave(self, step: S, hook: Callable[[], None]) -> None:
        self._leave_hooks.setdefault(step, []).append(hook)

    def blocked_reason(self) -> Optional[str]:
        check = self._guards.get(self._step)
        return check() if check else None

    def can_advance(self) -> bool:
        return not self.is_last and self.blocked_reason() is None

    def next(self) -> S:
        if self.is_last:
            raise StepBlocked(self._step, "Already on the last step")
        reason = self.blocked_reason()
        if reason:
            raise StepBlocked(self._step, reason)
        return self.go_to(self.steps[self.index + 1])

    def back(self) -> S:
        if self.is_first:
            return self._step
        return self.go_to(self.steps[self.index - 1])

    def skip_to_terminal(self) -> S:
        return self.go_to(self.terminal)

    def go_to(self, step: S) -> S:
        """Jump to ``step`` without checking guards."""
        if step not in self.steps:
            raise ValueError(f"unknown step {step!r}")
        if step != self._step:
            self._leave(self._step)
            logger.debug("Wizard step change", extra={"from_step": self._step.name, "to_step": step.name})
            self._step = step
        return self._step

    def reset(self) -> S:
        self._leave(self._step)
        self._step = self.initial
        return self._step

    def _leave(self, step: S) -> None:
        for hook in self._leave_hooks.get(step, []):
            hook()
