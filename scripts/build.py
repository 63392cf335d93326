"""PyInstaller 빌드 스크립트."""

import subprocess
import sys


def main() -> None:
    cmd = [
        sys.executable, "-m", "PyInstaller",
        "--onefile",
        "--console",
        "--name", "thumbcap",
        "--hidden-import", "cv2",
        "--hidden-import", "mss",
        "src/thumbcap/__main__.py",
    ]
    subprocess.run(cmd, check=True)


if __name__ == "__main__":
    main()
