"""압축 API 인증 토큰 캐시."""

from __future__ import annotations

import logging
import threading

import requests

from thumbcap.errors import AuthConfigurationError, AuthRequestError, WorkflowCancelledError
from thumbcap.io.cancellation import CallCancelled, CancelToken, run_cancellable
from thumbcap.models import CompressionCredential
from thumbcap.protocols import Clock, epoch_ms

logger = logging.getLogger(__name__)

TOKEN_VALIDITY_MS = 2 * 60 * 60 * 1000  # 2시간

_LOCK_POLL_INTERVAL = 0.05


class CompressionSession:
    """인증 토큰을 발급받아 만료 전까지 재사용한다.

    프로세스 수명 동안 하나를 공유하며, 갱신은 single-flight로 직렬화한다:
    동시에 갱신이 필요해진 호출자들은 진행 중인 요청을 기다렸다가 그 결과를 쓴다.
    """

    def __init__(
        self,
        public_key: str,
        auth_url: str,
        http: requests.Session | None = None,
        clock: Clock | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._public_key = public_key
        self._auth_url = auth_url
        self._http = http or requests.Session()
        self._clock = clock or epoch_ms
        self._timeout = timeout
        self._credential: CompressionCredential | None = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._public_key)

    def get_credential(self, cancel: CancelToken | None = None) -> CompressionCredential:
        """유효한 토큰을 반환한다. 없거나 만료되었으면 새로 발급받는다.

        Raises:
            AuthConfigurationError: 공개 키 미설정
            AuthRequestError: 인증 요청 실패 또는 토큰 누락
            WorkflowCancelledError: 대기/요청 중 취소됨
        """
        if not self._public_key:
            logger.error("압축 API 공개 키가 설정되지 않았습니다 (THUMBCAP_PUBLIC_KEY)")
            raise AuthConfigurationError(
                "Compression API public key not configured. "
                "Set THUMBCAP_PUBLIC_KEY or public_key in config.toml"
            )

        cached = self._cached()
        if cached is not None:
            logger.debug("캐시된 인증 토큰 사용")
            return cached

        self._acquire(cancel)
        try:
            # 대기하는 동안 다른 호출자가 갱신했을 수 있음
            cached = self._cached()
            if cached is not None:
                logger.debug("동시 갱신된 인증 토큰 사용")
                return cached
            credential = self._request_token(cancel)
            self._credential = credential
            return credential
        finally:
            self._lock.release()

    def invalidate(self) -> None:
        """캐시된 토큰을 버린다."""
        self._credential = None

    def _cached(self) -> CompressionCredential | None:
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential
        return None

    def _acquire(self, cancel: CancelToken | None) -> None:
        if cancel is None:
            self._lock.acquire()
            return
        while not self._lock.acquire(timeout=_LOCK_POLL_INTERVAL):
            if cancel.cancelled:
                raise WorkflowCancelledError("authenticate")

    def _request_token(self, cancel: CancelToken | None) -> CompressionCredential:
        logger.debug("새 인증 토큰 요청")
        now = self._clock()
        try:
            resp = run_cancellable(
                lambda: self._http.post(
                    self._auth_url,
                    json={"public_key": self._public_key},
                    timeout=self._timeout,
                ),
                cancel,
            )
        except CallCancelled:
            raise WorkflowCancelledError("authenticate") from None
        except requests.RequestException as e:
            logger.error("인증 요청 실패: %s", e)
            raise AuthRequestError(f"Authentication failed: {e}") from e

        if not resp.ok:
            logger.error(
                "인증 실패: status=%s reason=%s body=%s", resp.status_code, resp.reason, resp.text
            )
            raise AuthRequestError(
                f"Authentication failed: {resp.status_code} {resp.reason}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise AuthRequestError(
                "Authentication failed: malformed response",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthRequestError(
                "No token received from authentication endpoint",
                status_code=resp.status_code,
                body=data,
            )

        logger.info("인증 토큰 캐시 (%d분)", TOKEN_VALIDITY_MS // (60 * 1000))
        return CompressionCredential(token=str(token), expires_at_ms=now + TOKEN_VALIDITY_MS)
