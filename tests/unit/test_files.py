from pathlib import Path

import pytest

from docshelf.core.files import scoped_temp_file


def test_scoped_temp_file_writes_content_and_cleans_up() -> None:
    with scoped_temp_file(suffix=".yaml", content="a: 1\n") as path:
        assert path.suffix == ".yaml"
        assert path.read_text(encoding="utf-8") == "a: 1\n"
    assert not path.exists()


def test_scoped_temp_file_cleans_up_on_error() -> None:
    captured: list[Path] = []
    with pytest.raises(RuntimeError):
        with scoped_temp_file(content=b"\x00\x01") as path:
            captured.append(path)
            assert path.read_bytes() == b"\x00\x01"
            raise RuntimeError("conversion blew up")
    assert not captured[0].exists()
