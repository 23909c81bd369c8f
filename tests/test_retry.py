from __future__ import annotations

from dataclasses import dataclass, field

import pytest
import requests

from linearcli import retry

FIRST_SUCCESS_ATTEMPT = 2


@dataclass
class _Resp:
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)


@pytest.fixture
def sleeps(monkeypatch):
    recorded: list[float] = []
    monkeypatch.setattr(retry.time, "sleep", recorded.append)
    return recorded


def test_transient_response_then_success(sleeps):
    responses = [_Resp(429), _Resp(200)]
    result = retry.run_with_retries(
        lambda: responses.pop(0), cfg=retry.RetryConfig(attempts=3, base_sleep=0.01)
    )
    assert result.status_code == 200
    assert len(sleeps) == 1


def test_retry_after_header_is_honoured(sleeps):
    responses = [_Resp(503, {"Retry-After": "2"}), _Resp(200)]
    retry.run_with_retries(lambda: responses.pop(0), cfg=retry.RetryConfig(attempts=2, base_sleep=0.01))
    assert sleeps == [2.0]


def test_max_sleep_cap(sleeps, monkeypatch):
    monkeypatch.setenv("LINEARCLI_RETRY_MAX_SLEEP", "0.5")
    responses = [_Resp(503, {"Retry-After": "30"}), _Resp(200)]
    retry.run_with_retries(lambda: responses.pop(0), cfg=retry.RetryConfig(attempts=2, base_sleep=0.01))
    assert sleeps == [0.5]


def test_final_transient_response_is_returned(sleeps):
    calls: list[int] = []

    def fn():
        calls.append(1)
        return _Resp(502)

    result = retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.0))
    assert result.status_code == 502
    assert len(calls) == 3
    assert len(sleeps) == 2


def test_non_transient_status_not_retried(sleeps):
    calls: list[int] = []

    def fn():
        calls.append(1)
        return _Resp(400)

    retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=4, base_sleep=0.0))
    assert len(calls) == 1
    assert sleeps == []


def test_network_errors_retried_then_raised(sleeps):
    calls: list[int] = []

    def fn():
        calls.append(1)
        if len(calls) < FIRST_SUCCESS_ATTEMPT:
            raise requests.Timeout("slow")
        return _Resp(200)

    assert retry.run_with_retries(fn, cfg=retry.RetryConfig(attempts=3, base_sleep=0.0)).status_code == 200

    def always_fail():
        raise requests.ConnectionError("down")

    with pytest.raises(requests.ConnectionError):
        retry.run_with_retries(always_fail, cfg=retry.RetryConfig(attempts=2, base_sleep=0.0))


def test_env_defaults(monkeypatch):
    monkeypatch.setenv("LINEARCLI_RETRY_ATTEMPTS", "7")
    monkeypatch.setenv("LINEARCLI_RETRY_BASE", "bogus")
    cfg = retry.RetryConfig()
    assert cfg.attempts == 7
    assert cfg.base_sleep == 0.5
