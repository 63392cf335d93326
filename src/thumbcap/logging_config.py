"""로깅 설정."""
from __future__ import annotations
import logging
from pathlib import Path

_LOG_DIR = Path.home() / ".thumbcap" / "logs"

def setup_logging(level: int = logging.INFO, log_dir: Path | None = None) -> None:
    """파일 + 콘솔 로깅을 설정한다."""
    target_dir = log_dir or _LOG_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[
            logging.FileHandler(target_dir / "thumbcap.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    # urllib3 연결 로그 억제
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
