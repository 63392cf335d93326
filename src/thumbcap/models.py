"""Frozen dataclass 모델 정의."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from thumbcap.errors import ConfigurationError, OutputPathError

ASPECT_RATIO = 16 / 9


@dataclass(frozen=True)
class ViewportMetrics:
    """캡처 시점의 논리 화면 크기 스냅샷."""

    logical_width: int
    logical_height: int
    device_pixel_ratio: float = 1.0

    def __post_init__(self) -> None:
        if self.logical_width <= 0 or self.logical_height <= 0:
            raise ValueError(
                f"뷰포트 크기는 양수여야 합니다: {self.logical_width}x{self.logical_height}"
            )


@dataclass(frozen=True)
class SelectionBounds:
    """논리 좌표계의 선택 영역 (16:9 고정 비율은 선택 위젯이 보장)."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def centered(
        cls,
        viewport: ViewportMetrics,
        width_ratio: float = 0.6,
        max_width: float = 800,
    ) -> SelectionBounds:
        """뷰포트 중앙에 놓인 기본 16:9 선택 영역."""
        width = min(viewport.logical_width * width_ratio, max_width)
        height = width / ASPECT_RATIO
        return cls(
            x=(viewport.logical_width - width) / 2,
            y=(viewport.logical_height - height) / 2,
            width=width,
            height=height,
        )


@dataclass(frozen=True)
class RawCapture:
    """화면 캡처 원본.

    image는 디코딩된 BGR/BGRA numpy 배열이거나 PNG/JPEG 인코딩 버퍼다.
    """

    image: object  # numpy ndarray | bytes
    pixel_width: int
    pixel_height: int

    @classmethod
    def from_array(cls, image: object) -> RawCapture:
        h, w = image.shape[:2]  # type: ignore[attr-defined]
        return cls(image=image, pixel_width=int(w), pixel_height=int(h))


@dataclass(frozen=True)
class PixelCropRegion:
    """RawCapture 픽셀 좌표계의 크롭 영역."""

    x: int
    y: int
    width: int
    height: int

    def as_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class OutputFormat(Enum):
    """출력 이미지 형식."""

    JPEG = "image/jpeg"
    PNG = "image/png"

    @property
    def extension(self) -> str:
        return "png" if self is OutputFormat.PNG else "jpg"

    @classmethod
    def parse(cls, value: str) -> OutputFormat:
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"지원하지 않는 출력 형식: {value!r} (image/jpeg | image/png)"
            ) from None


@dataclass(frozen=True)
class TargetImage:
    """고정 해상도로 변환된 출력 이미지 (압축 전)."""

    encoded_buffer: bytes
    mime_type: str
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.encoded_buffer)


@dataclass(frozen=True)
class CompressionCredential:
    """압축 API 인증 토큰."""

    token: str
    expires_at_ms: int

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at_ms


@dataclass(frozen=True)
class SizeDetails:
    """압축 전후 크기 정보."""

    original_size: int
    compressed_size: int
    reduction_percent: float

    @classmethod
    def compute(cls, original_size: int, compressed_size: int) -> SizeDetails:
        if original_size <= 0:
            reduction = 0.0
        else:
            reduction = round((1 - compressed_size / original_size) * 100, 1)
        return cls(
            original_size=original_size,
            compressed_size=compressed_size,
            reduction_percent=reduction,
        )


@dataclass(frozen=True)
class CompressionOutcome:
    """압축 시도 결과. 실패 시 compressed=False, final_buffer는 원본."""

    final_buffer: bytes
    compressed: bool
    error_message: str | None = None
    size_details: SizeDetails | None = None
    failed_step: str | None = None
    error_details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class CaptureResult:
    """최종 캡처 산출물."""

    final_buffer: bytes
    filename: str
    mime_type: str
    compression_outcome: CompressionOutcome

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.final_buffer).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def save(self, directory: Path) -> Path:
        """directory/filename 으로 저장하고 경로를 반환한다.

        filename의 '/'는 하위 폴더로 취급한다 (템플릿 ID 'templates/abc').

        Raises:
            OutputPathError: directory 밖을 가리키는 이름 또는 쓰기 실패
        """
        root = directory.expanduser().resolve()
        target = (root / self.filename).resolve()
        if target == root or not target.is_relative_to(root):
            raise OutputPathError(f"출력 폴더 밖의 파일 이름: {self.filename!r}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(self.final_buffer)
        except OSError as e:
            raise OutputPathError(f"파일을 저장할 수 없습니다: {target} ({e})") from e
        return target


@dataclass
class AppConfig:
    """앱 설정."""

    public_key: str = ""
    secret_key: str = ""  # 예약됨, 전송하지 않음
    base_url: str = "https://api.iloveimg.com"
    auth_url: str = "https://api.iloveimg.com/v1/auth"
    tool: str = "compressimage"
    target_width: int = 560
    target_height: int = 315
    quality: float = 0.85
    output_format: OutputFormat = OutputFormat.JPEG
    compress: bool = True
    request_timeout: float = 30.0
    device_pixel_ratio: float = 1.0
    output_dir: Path = field(default_factory=lambda: Path.home() / "Pictures" / "thumbcap")

    @property
    def has_public_key(self) -> bool:
        return bool(self.public_key.strip())
