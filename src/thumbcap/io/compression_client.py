"""원격 이미지 압축 워크플로 (인증 → 작업 시작 → 업로드 → 처리 → 다운로드)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Callable

import requests

from thumbcap.errors import ConfigurationError, RemoteWorkflowError, WorkflowCancelledError
from thumbcap.io.cancellation import CallCancelled, CancelToken, run_cancellable
from thumbcap.io.compression_session import CompressionSession
from thumbcap.models import CompressionOutcome, OutputFormat, SizeDetails, TargetImage

logger = logging.getLogger(__name__)

_SUCCESS_STATUS = "TaskSuccess"


@dataclass(frozen=True)
class WorkflowContext:
    """단계 간에 전달되는 워크플로 상태."""

    image: TargetImage
    cancel: CancelToken | None = None
    token: str = ""
    server: str = ""
    task: str = ""
    server_filename: str = ""
    result: bytes = b""


Step = Callable[[WorkflowContext], WorkflowContext]


def _error_text(resp: requests.Response) -> tuple[object, str]:
    """응답 본문과 사람이 읽을 오류 메시지를 추출한다."""
    text = resp.text
    try:
        body: object = json.loads(text)
    except ValueError:
        return text, text or resp.reason

    message = ""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = str(error.get("message") or "")
            param = error.get("param")
            if message and param:
                message = f"{message}\nDetails: {json.dumps(param, indent=2)}"
        if not message:
            message = str(body.get("message") or "")
    return body, message or text or resp.reason


class CompressionClient:
    """압축 API 워크플로를 순서대로 실행한다.

    Compressor Protocol 구현. 어떤 단계든 실패하면 남은 단계를 건너뛰고
    원본 이미지를 그대로 돌려준다. compress()는 예외를 던지지 않는다.
    """

    def __init__(
        self,
        session: CompressionSession,
        base_url: str = "https://api.iloveimg.com",
        tool: str = "compressimage",
        http: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._tool = tool
        self._http = http or requests.Session()
        self._timeout = timeout
        self._steps: tuple[tuple[str, Step], ...] = (
            ("authenticate", self._authenticate),
            ("start_task", self._start_task),
            ("upload", self._upload),
            ("process", self._process),
            ("download", self._download),
        )

    @property
    def step_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._steps)

    def compress(self, image: TargetImage, cancel: CancelToken | None = None) -> CompressionOutcome:
        """이미지를 압축한다. 실패 시 compressed=False 결과를 반환한다."""
        ctx = WorkflowContext(image=image, cancel=cancel)
        current = self._steps[0][0]
        try:
            for name, step in self._steps:
                current = name
                if cancel is not None and cancel.cancelled:
                    raise WorkflowCancelledError(name)
                logger.debug("압축 단계 시작: %s", name)
                ctx = step(ctx)
        except RemoteWorkflowError as e:
            return self._fallback(image, e)
        except ConfigurationError as e:
            return self._fallback(image, RemoteWorkflowError(str(e), step=current))
        except Exception as e:
            logger.exception("압축 단계 %s에서 예상치 못한 오류", current)
            return self._fallback(image, RemoteWorkflowError(str(e) or type(e).__name__, step=current))

        details = SizeDetails.compute(image.size, len(ctx.result))
        logger.info(
            "압축 성공: %d -> %d bytes (%.1f%% 감소)",
            details.original_size, details.compressed_size, details.reduction_percent,
        )
        return CompressionOutcome(final_buffer=ctx.result, compressed=True, size_details=details)

    def _fallback(self, image: TargetImage, error: RemoteWorkflowError) -> CompressionOutcome:
        logger.warning(
            "압축 실패, 원본 사용: step=%s status=%s message=%s body=%s tool=%s base_url=%s",
            error.step, error.status_code, error, error.body, self._tool, self._base_url,
        )
        return CompressionOutcome(
            final_buffer=image.encoded_buffer,
            compressed=False,
            error_message=str(error),
            failed_step=error.step,
            error_details=error.details(),
        )

    # ── HTTP 공통 ─────────────────────────────────────────

    def _send(
        self, step: str, ctx: WorkflowContext, method: str, url: str, **kwargs: object
    ) -> requests.Response:
        headers = {"Authorization": f"Bearer {ctx.token}"}
        try:
            return run_cancellable(
                lambda: self._http.request(
                    method, url, headers=headers, timeout=self._timeout, **kwargs
                ),
                ctx.cancel,
            )
        except CallCancelled:
            raise WorkflowCancelledError(step) from None
        except requests.RequestException as e:
            raise RemoteWorkflowError(f"{step} request failed: {e}", step=step) from e

    @staticmethod
    def _json(step: str, resp: requests.Response, label: str) -> dict:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise RemoteWorkflowError(
                f"Invalid response from {label} endpoint",
                step=step,
                status_code=resp.status_code,
                body=resp.text,
            )
        return data

    # ── 단계 ──────────────────────────────────────────────

    def _authenticate(self, ctx: WorkflowContext) -> WorkflowContext:
        credential = self._session.get_credential(ctx.cancel)
        return replace(ctx, token=credential.token)

    def _start_task(self, ctx: WorkflowContext) -> WorkflowContext:
        url = f"{self._base_url}/v1/start/{self._tool}"
        resp = self._send("start_task", ctx, "GET", url)
        if not resp.ok:
            body, message = _error_text(resp)
            raise RemoteWorkflowError(
                f"Start task failed ({resp.status_code}): {message}",
                step="start_task",
                status_code=resp.status_code,
                body=body,
            )

        data = self._json("start_task", resp, "start")
        server, task = data.get("server"), data.get("task")
        if not server or not task:
            raise RemoteWorkflowError(
                "Invalid response from start endpoint",
                step="start_task",
                status_code=resp.status_code,
                body=data,
            )
        logger.debug("작업 시작: server=%s task=%s", server, task)
        return replace(ctx, server=str(server), task=str(task))

    def _upload(self, ctx: WorkflowContext) -> WorkflowContext:
        url = f"https://{ctx.server}/v1/upload"
        extension = OutputFormat(ctx.image.mime_type).extension
        files = {"file": (f"image.{extension}", ctx.image.encoded_buffer, ctx.image.mime_type)}
        resp = self._send("upload", ctx, "POST", url, data={"task": ctx.task}, files=files)
        if not resp.ok:
            raise RemoteWorkflowError(
                f"Upload failed: {resp.status_code} {resp.reason}",
                step="upload",
                status_code=resp.status_code,
                body=resp.text,
            )

        data = self._json("upload", resp, "upload")
        server_filename = data.get("server_filename")
        if not server_filename:
            raise RemoteWorkflowError(
                "Invalid response from upload endpoint",
                step="upload",
                status_code=resp.status_code,
                body=data,
            )
        return replace(ctx, server_filename=str(server_filename))

    def _process(self, ctx: WorkflowContext) -> WorkflowContext:
        url = f"https://{ctx.server}/v1/process"
        payload = {
            "task": ctx.task,
            "tool": self._tool,
            "files": [
                {"server_filename": ctx.server_filename, "filename": ctx.server_filename},
            ],
        }
        resp = self._send("process", ctx, "POST", url, json=payload)
        if not resp.ok:
            raise RemoteWorkflowError(
                f"Process failed: {resp.status_code} {resp.reason}",
                step="process",
                status_code=resp.status_code,
                body=resp.text,
            )

        data = self._json("process", resp, "process")
        if data.get("status") != _SUCCESS_STATUS:
            raise RemoteWorkflowError(
                f"Processing failed: {data.get('status_message') or 'Unknown error'}",
                step="process",
                status_code=resp.status_code,
                body=data,
            )
        return ctx

    def _download(self, ctx: WorkflowContext) -> WorkflowContext:
        url = f"https://{ctx.server}/v1/download/{ctx.task}"
        resp = self._send("download", ctx, "GET", url)
        if not resp.ok:
            raise RemoteWorkflowError(
                f"Download failed: {resp.status_code} {resp.reason}",
                step="download",
                status_code=resp.status_code,
                body=resp.text,
            )
        if not resp.content:
            raise RemoteWorkflowError(
                "Download failed: empty response", step="download", status_code=resp.status_code
            )
        return replace(ctx, result=resp.content)
