"""선택 영역 → 좌표 변환 → 크롭/리사이즈 → 압축 → 결과 조립 파이프라인."""

from __future__ import annotations

import logging

import requests

from thumbcap.capture.mapper import map_selection
from thumbcap.capture.mss_capture import MonitorViewport, MssCapture
from thumbcap.io.cancellation import CancelToken
from thumbcap.io.compression_client import CompressionClient
from thumbcap.io.compression_session import CompressionSession
from thumbcap.models import (
    AppConfig,
    CaptureResult,
    CompressionOutcome,
    RawCapture,
    SelectionBounds,
    ViewportMetrics,
)
from thumbcap.preprocess.transformer import ImageTransformer
from thumbcap.protocols import Clock, Compressor, DisplayCapturer, ViewportProvider, epoch_ms

logger = logging.getLogger(__name__)


def build_filename(template_id: str | None, extension: str, now_ms: int) -> str:
    """템플릿 ID가 있으면 '<id>.<ext>', 없으면 'thumbnail-<epoch ms>.<ext>'."""
    name = (template_id or "").strip()
    if name:
        return f"{name}.{extension}"
    return f"thumbnail-{now_ms}.{extension}"


class CapturePipeline:
    """캡처 파이프라인 조립 및 실행.

    크롭/리사이즈 실패는 그대로 전파하고, 압축 실패는 원본 이미지로 대체한다.
    """

    def __init__(
        self,
        config: AppConfig,
        transformer: ImageTransformer | None = None,
        compressor: Compressor | None = None,
        capturer: DisplayCapturer | None = None,
        viewport_provider: ViewportProvider | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config
        self._transformer = transformer or ImageTransformer(
            output_format=config.output_format, quality=config.quality,
        )
        self._compressor = compressor
        self._capturer = capturer
        self._viewport_provider = viewport_provider
        self._clock = clock or epoch_ms

    @classmethod
    def from_config(cls, config: AppConfig) -> CapturePipeline:
        """기본 구성요소(mss 캡처, 압축 API 클라이언트)로 파이프라인을 만든다."""
        http = requests.Session()
        session = CompressionSession(
            public_key=config.public_key,
            auth_url=config.auth_url,
            http=http,
            timeout=config.request_timeout,
        )
        client = CompressionClient(
            session=session,
            base_url=config.base_url,
            tool=config.tool,
            http=http,
            timeout=config.request_timeout,
        )
        return cls(
            config=config,
            compressor=client,
            capturer=MssCapture(),
            viewport_provider=MonitorViewport(device_pixel_ratio=config.device_pixel_ratio),
        )

    def capture(
        self,
        selection: SelectionBounds,
        viewport: ViewportMetrics,
        raw: RawCapture,
        template_id: str | None = None,
        cancel: CancelToken | None = None,
    ) -> CaptureResult:
        """선택 영역을 잘라 목표 크기 이미지로 만들고 압축을 시도한다.

        Raises:
            EncodingError: 크롭/리사이즈/인코딩 실패
        """
        region = map_selection(selection, viewport, raw)
        logger.debug(
            "좌표 변환: selection=(%s, %s, %s, %s) viewport=%dx%d raw=%dx%d -> %s",
            selection.x, selection.y, selection.width, selection.height,
            viewport.logical_width, viewport.logical_height,
            raw.pixel_width, raw.pixel_height, region.as_dict(),
        )

        image = self._transformer.transform(
            raw, region, self._config.target_width, self._config.target_height,
        )

        if self._config.compress and self._compressor is not None:
            outcome = self._compressor.compress(image, cancel)
        else:
            outcome = CompressionOutcome(
                final_buffer=image.encoded_buffer,
                compressed=False,
                error_message="Compression disabled",
            )

        if outcome.compressed:
            logger.info("압축 완료: %s", outcome.size_details)
        else:
            logger.warning("압축 없이 원본 사용: %s", outcome.error_message)

        filename = build_filename(
            template_id, self._transformer.output_format.extension, self._clock(),
        )
        return CaptureResult(
            final_buffer=outcome.final_buffer,
            filename=filename,
            mime_type=image.mime_type,
            compression_outcome=outcome,
        )

    def capture_screen(
        self,
        selection: SelectionBounds,
        template_id: str | None = None,
        cancel: CancelToken | None = None,
    ) -> CaptureResult:
        """현재 화면을 캡처해 capture()를 실행한다.

        Raises:
            CaptureUnavailableError: 화면 캡처 불가
            EncodingError: 크롭/리사이즈/인코딩 실패
        """
        if self._capturer is None or self._viewport_provider is None:
            raise RuntimeError("capturer와 viewport_provider가 필요합니다")
        viewport = self._viewport_provider.metrics()
        raw = self._capturer.grab()
        return self.capture(selection, viewport, raw, template_id=template_id, cancel=cancel)
