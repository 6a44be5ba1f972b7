"""
auth/saga.py -- Ordered steps with compensating undo actions.

Registration and account deletion touch two independently administered
stores (credentials and profiles). There is no distributed transaction
between them, so each cross-store operation runs as a saga: an ordered list
of steps, each with an optional undo. If step N fails, the undo actions of
steps N-1 .. 1 run in reverse order and the original exception is re-raised.

Undo actions must be idempotent -- deleting an already-deleted row is not an
error. A failing undo is logged and swallowed: the caller always sees the
error of the step that failed, never the error of the cleanup.

Layer rule: stdlib only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("spade.auth")


@dataclass
class SagaStep:
    name: str
    action: Callable[[], Any]
    compensate: Callable[[], Any] | None = None


class Saga:
    """Run steps in order; on failure, undo the completed ones in reverse.

    Usage:
        results = (
            Saga("register")
            .step("insert credential", lambda: store.insert(record), lambda: store.delete_by_id(record.id))
            .step("create profile", lambda: profiles.create(subject_id, username=name))
            .run()
        )
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._steps: list[SagaStep] = []

    def step(self, name: str, action: Callable[[], Any], compensate: Callable[[], Any] | None = None) -> Saga:
        self._steps.append(SagaStep(name, action, compensate))
        return self

    def run(self) -> list[Any]:
        """Execute every step and return their results in order."""
        completed: list[SagaStep] = []
        results: list[Any] = []
        for step in self._steps:
            try:
                results.append(step.action())
            except Exception:
                logger.warning("Saga %r failed at step %r; compensating %d step(s)", self.name, step.name, len(completed))
                self._compensate(completed)
                raise
            completed.append(step)
        return results

    def _compensate(self, completed: list[SagaStep]) -> None:
        for step in reversed(completed):
            if step.compensate is None:
                continue
            try:
                step.compensate()
            except Exception:
                logger.exception("Saga %r: compensation for step %r failed", self.name, step.name)
