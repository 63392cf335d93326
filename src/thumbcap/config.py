"""TOML 기반 설정 관리 (환경 변수 우선)."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from thumbcap.errors import ConfigurationError
from thumbcap.models import AppConfig, OutputFormat

_DEFAULT_PATH = Path.home() / ".thumbcap" / "config.toml"

# 환경 변수 → AppConfig 필드
_ENV_OVERRIDES = {
    "THUMBCAP_PUBLIC_KEY": "public_key",
    "THUMBCAP_SECRET_KEY": "secret_key",
    "THUMBCAP_BASE_URL": "base_url",
    "THUMBCAP_TOOL": "tool",
}


class ConfigManager:
    """AppConfig를 TOML 파일로 로드/저장하는 관리자."""

    def __init__(
        self,
        default_path: Path | None = None,
        environ: dict[str, str] | None = None,
    ) -> None:
        self.default_path = default_path or _DEFAULT_PATH
        self._environ = os.environ if environ is None else environ

    # ── 로드 ──────────────────────────────────────────────

    def load(self, path: Path | None = None) -> AppConfig:
        """TOML 파일에서 설정을 로드한다. 파일이 없으면 기본값 + 환경 변수."""
        target = path or self.default_path
        data: dict = {}
        if target.exists():
            try:
                with open(target, "rb") as f:
                    data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"설정 파일 파싱 실패 ({target}): {e}") from e

        defaults = AppConfig()
        image = data.get("image", {})

        output_dir = data.get("output_dir")
        config = AppConfig(
            public_key=str(data.get("public_key", defaults.public_key)),
            secret_key=str(data.get("secret_key", defaults.secret_key)),
            base_url=str(data.get("base_url", defaults.base_url)),
            auth_url=str(data.get("auth_url", defaults.auth_url)),
            tool=str(data.get("tool", defaults.tool)),
            target_width=int(image.get("width", defaults.target_width)),
            target_height=int(image.get("height", defaults.target_height)),
            quality=float(image.get("quality", defaults.quality)),
            output_format=OutputFormat.parse(
                str(image.get("format", defaults.output_format.value))
            ),
            compress=bool(data.get("compress", defaults.compress)),
            request_timeout=float(data.get("request_timeout", defaults.request_timeout)),
            device_pixel_ratio=float(
                data.get("device_pixel_ratio", defaults.device_pixel_ratio)
            ),
            output_dir=Path(output_dir).expanduser() if output_dir else defaults.output_dir,
        )

        for env_name, attr in _ENV_OVERRIDES.items():
            value = self._environ.get(env_name)
            if value:
                setattr(config, attr, value)

        self.validate(config)
        return config

    @staticmethod
    def validate(config: AppConfig) -> None:
        """값 범위를 검증한다."""
        if config.target_width <= 0 or config.target_height <= 0:
            raise ConfigurationError(
                f"출력 크기는 양수여야 합니다: {config.target_width}x{config.target_height}"
            )
        if not 0.0 <= config.quality <= 1.0:
            raise ConfigurationError(f"quality는 0.0~1.0 범위여야 합니다: {config.quality}")
        if config.device_pixel_ratio <= 0:
            raise ConfigurationError(
                f"device_pixel_ratio는 양수여야 합니다: {config.device_pixel_ratio}"
            )

    # ── 저장 ──────────────────────────────────────────────

    def save(self, config: AppConfig, path: Path | None = None) -> None:
        """AppConfig를 TOML 문자열로 직렬화하여 저장한다."""
        target = path or self.default_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self._serialize(config), encoding="utf-8")

    # ── 직렬화 ────────────────────────────────────────────

    @staticmethod
    def _escape_toml_str(value: str) -> str:
        """TOML 문자열 값을 이스케이프한다."""
        return value.replace("\\", "\\\\").replace('"', '\\"')

    @staticmethod
    def _serialize(config: AppConfig) -> str:
        """AppConfig를 TOML 문자열로 변환한다 (외부 의존성 없음).

        secret_key는 파일에 기록하지 않는다.
        """
        _esc = ConfigManager._escape_toml_str
        lines: list[str] = []

        lines.append(f'public_key = "{_esc(config.public_key)}"')
        lines.append(f'base_url = "{_esc(config.base_url)}"')
        lines.append(f'auth_url = "{_esc(config.auth_url)}"')
        lines.append(f'tool = "{_esc(config.tool)}"')
        lines.append(f"compress = {'true' if config.compress else 'false'}")
        lines.append(f"request_timeout = {float(config.request_timeout)}")
        lines.append(f"device_pixel_ratio = {float(config.device_pixel_ratio)}")
        lines.append(f'output_dir = "{_esc(str(config.output_dir))}"')

        lines.append("")
        lines.append("[image]")
        lines.append(f"width = {config.target_width}")
        lines.append(f"height = {config.target_height}")
        lines.append(f"quality = {float(config.quality)}")
        lines.append(f'format = "{config.output_format.value}"')

        lines.append("")  # trailing newline
        return "\n".join(lines)
