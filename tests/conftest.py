from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture  # type: ignore[misc]
def write_source(tmp_path: Path) -> Callable[[str, str], Path]:
    """Writes a CALC source file under tmp_path and returns its path."""

    def write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return write
