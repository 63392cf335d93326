"""16:9 화면 썸네일 캡처 + 원격 압축."""

__version__ = "0.1.0"
