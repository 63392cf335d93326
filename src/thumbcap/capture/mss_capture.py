"""mss 기반 화면 캡처."""

from __future__ import annotations

import logging

import mss
import mss.exception
import numpy as np

from thumbcap.errors import CaptureUnavailableError
from thumbcap.models import RawCapture, ViewportMetrics

logger = logging.getLogger(__name__)


class MssCapture:
    """mss를 이용한 모니터 전체 캡처.

    DisplayCapturer Protocol 구현.
    """

    def __init__(self, monitor: int = 1) -> None:
        self._monitor = monitor

    def grab(self) -> RawCapture:
        """모니터 전체를 캡처하여 RawCapture를 반환한다."""
        try:
            with mss.mss() as sct:
                if self._monitor >= len(sct.monitors):
                    raise CaptureUnavailableError(
                        f"모니터 {self._monitor}를 찾을 수 없습니다 (총 {len(sct.monitors) - 1}개)"
                    )
                raw = sct.grab(sct.monitors[self._monitor])
                # BGRA -> BGR: 알파 채널 제거
                image = np.array(raw)[:, :, :3]
        except mss.exception.ScreenShotError as e:
            logger.warning("화면 캡처 실패", exc_info=True)
            raise CaptureUnavailableError(f"화면을 캡처할 수 없습니다: {e}") from e
        return RawCapture.from_array(image)


class MonitorViewport:
    """모니터 크기와 device pixel ratio로 논리 뷰포트를 계산한다.

    ViewportProvider Protocol 구현.
    """

    def __init__(self, monitor: int = 1, device_pixel_ratio: float = 1.0) -> None:
        self._monitor = monitor
        self._device_pixel_ratio = device_pixel_ratio

    def metrics(self) -> ViewportMetrics:
        try:
            with mss.mss() as sct:
                if self._monitor >= len(sct.monitors):
                    raise CaptureUnavailableError(f"모니터 {self._monitor}를 찾을 수 없습니다")
                mon = sct.monitors[self._monitor]
        except mss.exception.ScreenShotError as e:
            raise CaptureUnavailableError(f"모니터 정보를 읽을 수 없습니다: {e}") from e
        dpr = self._device_pixel_ratio
        return ViewportMetrics(
            logical_width=max(1, round(mon["width"] / dpr)),
            logical_height=max(1, round(mon["height"] / dpr)),
            device_pixel_ratio=dpr,
        )
