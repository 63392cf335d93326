"""python -m thumbcap 진입점."""

from thumbcap.cli import app

app()
