"""Protocol 인터페이스 정의."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from thumbcap.models import CompressionOutcome, RawCapture, TargetImage, ViewportMetrics

if TYPE_CHECKING:
    from thumbcap.io.cancellation import CancelToken


@runtime_checkable
class DisplayCapturer(Protocol):
    """화면 전체 캡처 인터페이스."""

    def grab(self) -> RawCapture:
        """캡처 불가 화면이면 CaptureUnavailableError."""
        ...


@runtime_checkable
class ViewportProvider(Protocol):
    """현재 뷰포트 정보 인터페이스."""

    def metrics(self) -> ViewportMetrics: ...


@runtime_checkable
class Compressor(Protocol):
    """이미지 압축 인터페이스. 예외를 던지지 않는다."""

    def compress(
        self, image: TargetImage, cancel: CancelToken | None = None
    ) -> CompressionOutcome: ...


class Clock(Protocol):
    """epoch 밀리초 시계."""

    def __call__(self) -> int: ...


def epoch_ms() -> int:
    """기본 Clock: 현재 epoch 밀리초."""
    return int(time.time() * 1000)
