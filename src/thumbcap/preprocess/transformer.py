"""캡처 원본 크롭 → 고정 해상도 리사이즈 → 인코딩."""

from __future__ import annotations

import logging

import cv2
import numpy as np

from thumbcap.errors import EncodingError
from thumbcap.models import OutputFormat, PixelCropRegion, RawCapture, TargetImage

logger = logging.getLogger(__name__)


def decode_image(buffer: bytes) -> np.ndarray:
    """PNG/JPEG 버퍼를 BGR(A) numpy 배열로 디코딩한다."""
    if not buffer:
        raise EncodingError("빈 이미지 버퍼")
    data = np.frombuffer(buffer, dtype=np.uint8)
    image = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise EncodingError("이미지를 디코딩할 수 없습니다")
    return image


def _to_uint8(image: np.ndarray) -> np.ndarray:
    """16비트/부동소수 래스터를 0~255 범위로 스케일한다."""
    if image.dtype == np.uint16:
        return cv2.convertScaleAbs(image, alpha=255.0 / 65535.0)
    if np.issubdtype(image.dtype, np.floating):
        # 0~1 정규화 값이면 255배, 아니면 이미 0~255 범위로 본다
        alpha = 255.0 if float(np.nanmax(image)) <= 1.0 else 1.0
        return cv2.convertScaleAbs(np.clip(np.nan_to_num(image), 0, None), alpha=alpha)
    return np.clip(image, 0, 255).astype(np.uint8)


class ImageTransformer:
    """RawCapture를 잘라 목표 크기로 늘리거나 줄인 뒤 인코딩한다.

    비율은 선택 위젯이 맞춘다고 가정하며, 다르면 목표 크기에 맞게 늘린다.
    """

    def __init__(
        self,
        output_format: OutputFormat = OutputFormat.JPEG,
        quality: float = 0.85,
    ) -> None:
        self._format = output_format
        self._quality = quality

    @property
    def output_format(self) -> OutputFormat:
        return self._format

    def transform(
        self,
        raw: RawCapture,
        region: PixelCropRegion,
        target_width: int,
        target_height: int,
    ) -> TargetImage:
        """크롭 → 리사이즈 → 인코딩."""
        if target_width <= 0 or target_height <= 0:
            raise EncodingError(f"목표 크기는 양수여야 합니다: {target_width}x{target_height}")

        image = self._load(raw)
        cropped = self._crop(image, region)
        resized = self._resize(cropped, target_width, target_height)
        buffer = self._encode(resized)

        logger.debug(
            "변환 완료: crop=%s -> %dx%d (%d bytes)",
            region.as_dict(), target_width, target_height, len(buffer),
        )
        return TargetImage(
            encoded_buffer=buffer,
            mime_type=self._format.value,
            width=target_width,
            height=target_height,
        )

    @staticmethod
    def _load(raw: RawCapture) -> np.ndarray:
        if isinstance(raw.image, (bytes, bytearray, memoryview)):
            image = decode_image(bytes(raw.image))
        elif isinstance(raw.image, np.ndarray):
            image = raw.image
        else:
            raise EncodingError(f"지원하지 않는 래스터 타입: {type(raw.image).__name__}")

        if image.ndim not in (2, 3) or image.size == 0:
            raise EncodingError(f"잘못된 래스터 형태: {image.shape}")
        if image.dtype != np.uint8:
            image = _to_uint8(image)
        return image

    @staticmethod
    def _crop(image: np.ndarray, region: PixelCropRegion) -> np.ndarray:
        """영역을 그대로 잘라낸다. 0 크기 영역은 1px로 취급."""
        h, w = image.shape[:2]
        x = min(max(region.x, 0), w - 1)
        y = min(max(region.y, 0), h - 1)
        width = min(max(region.width, 1), w - x)
        height = min(max(region.height, 1), h - y)
        return image[y:y + height, x:x + width]

    @staticmethod
    def _resize(image: np.ndarray, target_width: int, target_height: int) -> np.ndarray:
        h, w = image.shape[:2]
        if (w, h) == (target_width, target_height):
            return image
        # 축소는 INTER_AREA, 확대는 INTER_CUBIC
        shrinking = target_width * target_height < w * h
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_CUBIC
        return cv2.resize(image, (target_width, target_height), interpolation=interpolation)

    def _encode(self, image: np.ndarray) -> bytes:
        if self._format is OutputFormat.PNG:
            ok, encoded = cv2.imencode(".png", image)
        else:
            if image.ndim == 3 and image.shape[2] == 4:
                image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
            quality = int(round(min(max(self._quality, 0.0), 1.0) * 100))
            ok, encoded = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
        if not ok:
            raise EncodingError(f"{self._format.value} 인코딩 실패")
        return encoded.tobytes()
