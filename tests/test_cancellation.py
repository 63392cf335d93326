"""취소 신호 단위 테스트."""

from __future__ import annotations

import threading

import pytest

from thumbcap.io.cancellation import CallCancelled, CancelToken, run_cancellable


class TestRunCancellable:
    """run_cancellable 검증."""

    def test_without_token_calls_inline(self) -> None:
        caller = threading.current_thread()
        seen: list[threading.Thread] = []

        def fn() -> int:
            seen.append(threading.current_thread())
            return 42

        assert run_cancellable(fn, None) == 42
        assert seen == [caller]

    def test_returns_result(self) -> None:
        assert run_cancellable(lambda: "ok", CancelToken()) == "ok"

    def test_propagates_exception(self) -> None:
        def fn() -> None:
            raise ValueError("bad")

        with pytest.raises(ValueError):
            run_cancellable(fn, CancelToken())

    def test_already_cancelled_skips_call(self) -> None:
        token = CancelToken()
        token.cancel()
        called: list[bool] = []
        with pytest.raises(CallCancelled):
            run_cancellable(lambda: called.append(True), token)
        assert called == []

    def test_cancel_while_waiting(self) -> None:
        token = CancelToken()
        release = threading.Event()

        def fn() -> str:
            token.cancel()
            release.wait(2.0)
            return "late"

        try:
            with pytest.raises(CallCancelled):
                run_cancellable(fn, token)
        finally:
            release.set()


class TestCancelToken:
    def test_initial_state(self) -> None:
        token = CancelToken()
        assert token.cancelled is False
        token.cancel()
        assert token.cancelled is True
