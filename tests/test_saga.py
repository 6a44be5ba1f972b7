"""Unit tests for auth/saga.py -- ordered steps with compensation.

Covers:
- all steps run in order and their results are returned
- a failing step triggers undo of completed steps in reverse order
- the failing step's own undo is not run
- a failing undo does not mask the original error
"""

import pytest

from auth.saga import Saga


class _Boom(Exception):
    pass


def _fail():
    raise _Boom("step failed")


def test_runs_steps_in_order():
    calls = []
    results = (
        Saga("ok")
        .step("one", lambda: calls.append("one") or 1)
        .step("two", lambda: calls.append("two") or 2)
        .run()
    )
    assert calls == ["one", "two"]
    assert results == [1, 2]


def test_failure_compensates_in_reverse():
    undone = []
    saga = (
        Saga("fails")
        .step("one", lambda: None, lambda: undone.append("one"))
        .step("two", lambda: None, lambda: undone.append("two"))
        .step("three", _fail, lambda: undone.append("three"))
    )
    with pytest.raises(_Boom):
        saga.run()
    assert undone == ["two", "one"]


def test_steps_after_failure_do_not_run():
    calls = []
    saga = Saga("short").step("one", _fail).step("two", lambda: calls.append("two"))
    with pytest.raises(_Boom):
        saga.run()
    assert calls == []


def test_failing_compensation_keeps_original_error():
    undone = []

    def broken_undo():
        raise RuntimeError("undo failed")

    saga = (
        Saga("messy")
        .step("one", lambda: None, lambda: undone.append("one"))
        .step("two", lambda: None, broken_undo)
        .step("three", _fail)
    )
    with pytest.raises(_Boom):
        saga.run()
    # Compensation continues past the broken undo.
    assert undone == ["one"]
