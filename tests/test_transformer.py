"""이미지 변환 단위 테스트."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from thumbcap.errors import EncodingError
from thumbcap.models import OutputFormat, PixelCropRegion, RawCapture
from thumbcap.preprocess.transformer import ImageTransformer, decode_image


def _gradient(width: int = 1280, height: int = 720) -> np.ndarray:
    xs = np.linspace(0, 255, width, dtype=np.uint8)
    ys = np.linspace(0, 255, height, dtype=np.uint8)
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :, 0] = xs[np.newaxis, :]
    image[:, :, 1] = ys[:, np.newaxis]
    image[:, :, 2] = 128
    return image


class TestTransform:
    """ImageTransformer.transform 검증."""

    @pytest.mark.parametrize(
        "region",
        [
            PixelCropRegion(100, 100, 320, 180),
            PixelCropRegion(0, 0, 1280, 720),
            PixelCropRegion(1200, 100, 80, 180),  # 비율이 다른 영역
            PixelCropRegion(10, 10, 40, 300),
        ],
    )
    def test_output_has_target_size(self, region: PixelCropRegion) -> None:
        """입력 비율과 무관하게 목표 크기로 출력된다."""
        transformer = ImageTransformer()
        result = transformer.transform(RawCapture.from_array(_gradient()), region, 560, 315)

        assert result.width == 560
        assert result.height == 315
        assert result.mime_type == "image/jpeg"
        decoded = decode_image(result.encoded_buffer)
        assert decoded.shape[:2] == (315, 560)

    def test_png_roundtrip_dimensions(self) -> None:
        transformer = ImageTransformer(output_format=OutputFormat.PNG)
        result = transformer.transform(
            RawCapture.from_array(_gradient()), PixelCropRegion(0, 0, 640, 360), 640, 360,
        )
        assert result.mime_type == "image/png"
        assert decode_image(result.encoded_buffer).shape[:2] == (360, 640)

    def test_crop_is_lossless(self) -> None:
        """목표 크기가 영역과 같으면 PNG 출력은 원본 조각과 같다."""
        image = _gradient()
        transformer = ImageTransformer(output_format=OutputFormat.PNG)
        result = transformer.transform(
            RawCapture.from_array(image), PixelCropRegion(200, 100, 160, 90), 160, 90,
        )
        decoded = decode_image(result.encoded_buffer)
        np.testing.assert_array_equal(decoded, image[100:190, 200:360])

    def test_uniform_region_stays_uniform(self) -> None:
        """단색 영역은 확대 후에도 같은 색이다."""
        image = np.zeros((720, 1280, 3), dtype=np.uint8)
        image[:, 640:] = (255, 0, 0)
        transformer = ImageTransformer(output_format=OutputFormat.PNG)
        result = transformer.transform(
            RawCapture.from_array(image), PixelCropRegion(700, 100, 160, 90), 560, 315,
        )
        decoded = decode_image(result.encoded_buffer)
        assert (decoded == np.array([255, 0, 0], dtype=np.uint8)).all()

    def test_encoded_raw_input(self) -> None:
        """PNG 인코딩된 캡처도 처리한다."""
        ok, png = cv2.imencode(".png", _gradient())
        assert ok
        raw = RawCapture(image=png.tobytes(), pixel_width=1280, pixel_height=720)
        result = ImageTransformer().transform(raw, PixelCropRegion(100, 100, 320, 180), 560, 315)
        assert decode_image(result.encoded_buffer).shape[:2] == (315, 560)

    def test_bgra_input_jpeg(self) -> None:
        """알파 채널이 있어도 JPEG로 인코딩된다."""
        bgra = np.dstack([_gradient(), np.full((720, 1280), 255, dtype=np.uint8)])
        result = ImageTransformer().transform(
            RawCapture.from_array(bgra), PixelCropRegion(0, 0, 320, 180), 560, 315,
        )
        assert decode_image(result.encoded_buffer).shape == (315, 560, 3)

    @pytest.mark.parametrize(
        ("image", "expected"),
        [
            (np.full((90, 160, 3), 100 * 257, dtype=np.uint16), 100),
            (np.full((90, 160, 3), 65535, dtype=np.uint16), 255),
            (np.full((90, 160, 3), 0.2, dtype=np.float32), 51),
            (np.full((90, 160, 3), 100.0, dtype=np.float64), 100),
        ],
    )
    def test_wide_dtype_is_scaled(self, image: np.ndarray, expected: int) -> None:
        """16비트/부동소수 래스터는 잘리지 않고 0~255로 스케일된다."""
        transformer = ImageTransformer(output_format=OutputFormat.PNG)
        result = transformer.transform(
            RawCapture.from_array(image), PixelCropRegion(0, 0, 160, 90), 160, 90,
        )
        decoded = decode_image(result.encoded_buffer)
        assert decoded.dtype == np.uint8
        assert (decoded == expected).all()

    def test_encoded_16bit_png_input(self) -> None:
        ok, png = cv2.imencode(".png", np.full((90, 160, 3), 200 * 257, dtype=np.uint16))
        assert ok
        raw = RawCapture(image=png.tobytes(), pixel_width=160, pixel_height=90)
        transformer = ImageTransformer(output_format=OutputFormat.PNG)
        result = transformer.transform(raw, PixelCropRegion(0, 0, 160, 90), 160, 90)
        assert (decode_image(result.encoded_buffer) == 200).all()

    def test_degenerate_region_tolerated(self) -> None:
        """0 크기 영역도 1px로 처리해 목표 크기를 낸다."""
        result = ImageTransformer().transform(
            RawCapture.from_array(_gradient()), PixelCropRegion(1279, 719, 0, 0), 560, 315,
        )
        assert (result.width, result.height) == (560, 315)

    def test_lower_quality_is_smaller(self) -> None:
        noisy = np.random.default_rng(0).integers(0, 256, (720, 1280, 3), dtype=np.uint8)
        raw = RawCapture.from_array(noisy)
        region = PixelCropRegion(0, 0, 1280, 720)
        low = ImageTransformer(quality=0.2).transform(raw, region, 560, 315)
        high = ImageTransformer(quality=0.95).transform(raw, region, 560, 315)
        assert low.size < high.size


class TestTransformErrors:
    """실패 경로."""

    @pytest.mark.parametrize("size", [(0, 315), (560, 0), (-1, -1)])
    def test_non_positive_target(self, size: tuple[int, int]) -> None:
        with pytest.raises(EncodingError):
            ImageTransformer().transform(
                RawCapture.from_array(_gradient()), PixelCropRegion(0, 0, 320, 180), *size,
            )

    def test_undecodable_buffer(self) -> None:
        raw = RawCapture(image=b"not an image", pixel_width=1280, pixel_height=720)
        with pytest.raises(EncodingError):
            ImageTransformer().transform(raw, PixelCropRegion(0, 0, 320, 180), 560, 315)

    def test_unsupported_raster_type(self) -> None:
        raw = RawCapture(image="nope", pixel_width=1280, pixel_height=720)
        with pytest.raises(EncodingError):
            ImageTransformer().transform(raw, PixelCropRegion(0, 0, 320, 180), 560, 315)

    def test_decode_empty(self) -> None:
        with pytest.raises(EncodingError):
            decode_image(b"")
