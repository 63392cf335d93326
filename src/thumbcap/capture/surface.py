"""캡처 대상 페이지 판별 및 템플릿 ID 추출."""

from __future__ import annotations

from urllib.parse import urlparse

from thumbcap.errors import CaptureUnavailableError

_RESTRICTED_SCHEMES = frozenset({"chrome", "chrome-extension", "moz-extension"})


def ensure_capturable(url: str) -> None:
    """내부 페이지(chrome:// 등)면 CaptureUnavailableError."""
    scheme = urlparse(url).scheme.lower()
    if scheme in _RESTRICTED_SCHEMES:
        raise CaptureUnavailableError(
            f"이 페이지는 캡처할 수 없습니다 ({scheme}:). 일반 웹 페이지로 이동하세요."
        )


def template_id_from_url(url: str) -> str | None:
    """URL 경로에서 선행 '/'를 뗀 템플릿 ID. 없으면 None."""
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    template_id = path[1:] if path.startswith("/") else path
    return template_id or None
