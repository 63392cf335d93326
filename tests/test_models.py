"""모델 단위 테스트."""

from __future__ import annotations

import base64
from dataclasses import FrozenInstanceError
from pathlib import Path

import numpy as np
import pytest

from thumbcap.errors import ConfigurationError, OutputPathError
from thumbcap.models import (
    AppConfig,
    CaptureResult,
    CompressionCredential,
    CompressionOutcome,
    OutputFormat,
    PixelCropRegion,
    RawCapture,
    SelectionBounds,
    SizeDetails,
    ViewportMetrics,
)


class TestViewportMetrics:
    def test_valid(self) -> None:
        vp = ViewportMetrics(1280, 720, 2.0)
        assert vp.device_pixel_ratio == 2.0

    def test_frozen(self) -> None:
        vp = ViewportMetrics(1280, 720)
        with pytest.raises(FrozenInstanceError):
            vp.logical_width = 10  # type: ignore[misc]

    @pytest.mark.parametrize("size", [(0, 720), (1280, 0), (-1, 720)])
    def test_non_positive(self, size: tuple[int, int]) -> None:
        with pytest.raises(ValueError):
            ViewportMetrics(*size)


class TestSelectionBounds:
    def test_centered_default(self) -> None:
        """기본 선택은 뷰포트 너비 60%, 16:9, 중앙 배치."""
        sel = SelectionBounds.centered(ViewportMetrics(1280, 720))
        assert sel.width == pytest.approx(768.0)
        assert sel.height == pytest.approx(432.0)
        assert sel.x == pytest.approx(256.0)
        assert sel.y == pytest.approx(144.0)

    def test_centered_max_width(self) -> None:
        sel = SelectionBounds.centered(ViewportMetrics(2560, 1440))
        assert sel.width == 800
        assert sel.height == pytest.approx(450.0)


class TestRawCapture:
    def test_from_array(self) -> None:
        raw = RawCapture.from_array(np.zeros((1440, 2560, 3), dtype=np.uint8))
        assert (raw.pixel_width, raw.pixel_height) == (2560, 1440)


class TestOutputFormat:
    def test_extensions(self) -> None:
        assert OutputFormat.JPEG.extension == "jpg"
        assert OutputFormat.PNG.extension == "png"

    def test_parse(self) -> None:
        assert OutputFormat.parse("image/png") is OutputFormat.PNG

    def test_parse_invalid(self) -> None:
        with pytest.raises(ConfigurationError):
            OutputFormat.parse("image/webp")


class TestCredential:
    def test_validity_boundary(self) -> None:
        """만료 시각 직전까지만 유효하다."""
        cred = CompressionCredential(token="t", expires_at_ms=1000)
        assert cred.is_valid(999) is True
        assert cred.is_valid(1000) is False


class TestSizeDetails:
    def test_reduction(self) -> None:
        d = SizeDetails.compute(50000, 12000)
        assert d.reduction_percent == 76.0

    def test_rounds_to_one_decimal(self) -> None:
        assert SizeDetails.compute(3000, 1000).reduction_percent == 66.7

    def test_growth_is_negative(self) -> None:
        assert SizeDetails.compute(1000, 1100).reduction_percent == -10.0

    def test_zero_original(self) -> None:
        assert SizeDetails.compute(0, 10).reduction_percent == 0.0


class TestCaptureResult:
    def _result(self, filename: str = "t1.jpg") -> CaptureResult:
        outcome = CompressionOutcome(final_buffer=b"abc", compressed=False, error_message="x")
        return CaptureResult(
            final_buffer=b"abc", filename=filename, mime_type="image/jpeg", compression_outcome=outcome,
        )

    def test_data_url(self) -> None:
        url = self._result().to_data_url()
        assert url.startswith("data:image/jpeg;base64,")
        assert base64.b64decode(url.split(",", 1)[1]) == b"abc"

    def test_save(self, tmp_path: Path) -> None:
        path = self._result().save(tmp_path / "out")
        assert path == (tmp_path / "out" / "t1.jpg").resolve()
        assert path.read_bytes() == b"abc"

    def test_save_nested_name(self, tmp_path: Path) -> None:
        """'/'가 들어간 이름은 하위 폴더를 만들어 저장한다."""
        path = self._result("templates/abc.jpg").save(tmp_path / "out")
        assert path == (tmp_path / "out" / "templates" / "abc.jpg").resolve()
        assert path.read_bytes() == b"abc"

    @pytest.mark.parametrize("filename", ["../x.jpg", "a/../../x.jpg", "/etc/x.jpg", "."])
    def test_save_outside_directory(self, tmp_path: Path, filename: str) -> None:
        """출력 폴더 밖을 가리키는 이름은 거부한다."""
        with pytest.raises(OutputPathError):
            self._result(filename).save(tmp_path / "out")
        assert not (tmp_path / "x.jpg").exists()

    def test_save_write_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "out" / "templates"
        blocker.parent.mkdir()
        blocker.write_bytes(b"file, not a folder")
        with pytest.raises(OutputPathError):
            self._result("templates/abc.jpg").save(tmp_path / "out")


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert (cfg.target_width, cfg.target_height) == (560, 315)
        assert cfg.quality == 0.85
        assert cfg.output_format is OutputFormat.JPEG
        assert cfg.tool == "compressimage"
        assert cfg.has_public_key is False

    def test_region_as_dict(self) -> None:
        assert PixelCropRegion(1, 2, 3, 4).as_dict() == {"x": 1, "y": 2, "width": 3, "height": 4}
