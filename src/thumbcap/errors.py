"""예외 계층 정의."""

from __future__ import annotations


class ThumbcapError(Exception):
    """thumbcap 최상위 예외."""


class ConfigurationError(ThumbcapError):
    """설정 누락/오류. 압축에만 치명적이며 캡처는 계속된다."""


class AuthConfigurationError(ConfigurationError):
    """API 공개 키가 설정되지 않음."""


class CaptureUnavailableError(ThumbcapError):
    """현재 화면(페이지)을 캡처할 수 없음."""


class EncodingError(ThumbcapError):
    """크롭/리사이즈/인코딩 실패."""


class RemoteWorkflowError(ThumbcapError):
    """원격 압축 워크플로 단계 실패.

    Attributes:
        step: 실패한 단계 이름 ("authenticate", "start_task", ...)
        status_code: HTTP 상태 코드 (전송 오류면 None)
        body: 응답 본문 (진단용)
    """

    def __init__(
        self,
        message: str,
        step: str,
        status_code: int | None = None,
        body: object = None,
    ) -> None:
        super().__init__(message)
        self.step = step
        self.status_code = status_code
        self.body = body

    def details(self) -> dict:
        return {"step": self.step, "status_code": self.status_code, "body": self.body}


class AuthRequestError(RemoteWorkflowError):
    """인증 요청 실패 또는 토큰 누락."""

    def __init__(self, message: str, status_code: int | None = None, body: object = None) -> None:
        super().__init__(message, step="authenticate", status_code=status_code, body=body)


class WorkflowCancelledError(RemoteWorkflowError):
    """취소 신호로 중단됨."""

    def __init__(self, step: str) -> None:
        super().__init__("Compression cancelled", step=step)


class OutputPathError(ThumbcapError):
    """저장 경로가 출력 폴더를 벗어나거나 쓸 수 없음."""
