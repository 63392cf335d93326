"""명령줄 진입점: 현재 화면에서 선택 영역을 캡처해 썸네일로 저장한다."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from thumbcap.capture.surface import ensure_capturable, template_id_from_url
from thumbcap.config import ConfigManager
from thumbcap.errors import ThumbcapError
from thumbcap.logging_config import setup_logging
from thumbcap.models import ASPECT_RATIO, SelectionBounds
from thumbcap.pipeline.pipeline import CapturePipeline

app = typer.Typer(help="16:9 thumbnail capture", add_completion=False)


@app.command()
def capture(
    x: float = typer.Option(..., help="선택 영역 x (논리 좌표)"),
    y: float = typer.Option(..., help="선택 영역 y (논리 좌표)"),
    width: float = typer.Option(..., help="선택 영역 너비"),
    height: Optional[float] = typer.Option(None, help="선택 영역 높이 (생략 시 16:9)"),
    template_id: Optional[str] = typer.Option(None, "--template-id", "-t", help="파일 이름"),
    url: Optional[str] = typer.Option(None, help="캡처 대상 페이지 URL (템플릿 ID 기본값)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="저장 폴더"),
    no_compress: bool = typer.Option(False, "--no-compress", help="원격 압축 생략"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="config.toml 경로"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """선택 영역을 캡처해 저장한다."""
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    try:
        config = ConfigManager().load(config_path)
        if url:
            ensure_capturable(url)
            template_id = template_id or template_id_from_url(url)
        if no_compress:
            config.compress = False

        selection = SelectionBounds(
            x=x, y=y, width=width, height=height if height is not None else width / ASPECT_RATIO,
        )
        pipeline = CapturePipeline.from_config(config)
        result = pipeline.capture_screen(selection, template_id=template_id)
        path = result.save(out or config.output_dir)
    except ThumbcapError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    outcome = result.compression_outcome
    typer.echo(f"Saved {path}")
    if outcome.compressed and outcome.size_details is not None:
        d = outcome.size_details
        typer.echo(
            f"Compressed {d.original_size} -> {d.compressed_size} bytes "
            f"({d.reduction_percent:.1f}% smaller)"
        )
    else:
        typer.echo(f"Not compressed: {outcome.error_message}")


@app.command("config-path")
def config_path() -> None:
    """기본 설정 파일 경로를 출력한다."""
    typer.echo(str(ConfigManager().default_path))


if __name__ == "__main__":
    app()
