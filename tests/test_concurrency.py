from __future__ import annotations

import threading
import time

import pytest

from linearcli.concurrency import ConcurrencyConfig, FanOut, fan_out
from linearcli.errors import NotFoundError


def test_results_follow_task_order():
    def slow() -> str:
        time.sleep(0.05)
        return "slow"

    results = fan_out({"first": slow, "second": lambda: "fast"})
    assert list(results) == ["first", "second"]
    assert results == {"first": "slow", "second": "fast"}


def test_tasks_run_side_by_side():
    barrier = threading.Barrier(2, timeout=5)

    def wait() -> int:
        # both tasks must be running at once for the barrier to release
        return barrier.wait()

    results = fan_out({"a": wait, "b": wait}, ConcurrencyConfig(max_workers=2))
    assert sorted(results.values()) == [0, 1]


def test_disabled_runs_sequentially():
    order: list[str] = []
    config = ConcurrencyConfig(enabled=False)
    FanOut(config).run({"a": lambda: order.append("a"), "b": lambda: order.append("b")})
    assert order == ["a", "b"]


def test_first_error_is_raised():
    def fail() -> str:
        raise NotFoundError("State", "Done", "for team ENG")

    with pytest.raises(NotFoundError) as exc:
        fan_out({"state": fail, "cycle": lambda: "c1"})
    assert str(exc.value) == 'State "Done" for team ENG not found'


def test_empty_and_single_task():
    assert fan_out({}) == {}
    assert fan_out({"only": lambda: 1}) == {"only": 1}


def test_max_workers_is_at_least_one():
    assert ConcurrencyConfig(max_workers=0).max_workers == 1
