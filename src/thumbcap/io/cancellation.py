"""네트워크 호출 취소 신호."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, TypeVar

T = TypeVar("T")

_POLL_INTERVAL = 0.05


class CancelToken:
    """취소 신호. 여러 호출에 공유할 수 있다."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class CallCancelled(Exception):
    """run_cancellable 대기 중 취소됨."""


def run_cancellable(fn: Callable[[], T], cancel: CancelToken | None) -> T:
    """fn을 실행하되 cancel이 켜지면 결과를 기다리지 않고 CallCancelled.

    cancel이 없으면 현재 스레드에서 그대로 호출한다. 취소된 호출은
    워커 스레드에서 요청 timeout까지 마저 진행된 뒤 버려진다.
    """
    if cancel is None:
        return fn()
    if cancel.cancelled:
        raise CallCancelled()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="thumbcap-http")
    try:
        future: Future[T] = executor.submit(fn)
        while not future.done():
            if cancel.wait(_POLL_INTERVAL):
                future.cancel()
                raise CallCancelled()
        return future.result()
    finally:
        executor.shutdown(wait=False)
