import base64
from pathlib import Path
from typing import Callable
from urllib.parse import quote

from fastapi.testclient import TestClient

from conftest import write_manifest
from docshelf.core.config import AppSettings
from docshelf.web.app import create_app

CITEPROC_YAML = b"references:\n- id: chocolate\n  title: Chocolate Games\n  issued:\n  - year: 1989\n"


def _client(content_tree: Path, **overrides: object) -> TestClient:
    settings = AppSettings(content_dir=content_tree, watch_enabled=False, **overrides)  # type: ignore[arg-type]
    return TestClient(create_app(settings))


def test_web_app_listing_and_lookup(content_tree: Path) -> None:
    client = _client(content_tree)

    r = client.get("/api/version")
    assert r.status_code == 200
    assert r.json() == {"api_version": "1.0"}

    r = client.get("/api/documents")
    assert r.status_code == 200
    payload = r.json()
    assert payload["count"] == 3
    assert [doc["date"] for doc in payload["documents"]] == ["2021-06-01", "2020-06-01", "2020-01-01"]

    r = client.get("/api/documents?include_drafts=false&limit=1")
    assert [doc["slug"] for doc in r.json()["documents"]] == ["writing-in-pandoc-markdown"]

    r = client.get("/api/documents/writing-in-markdown")
    assert r.status_code == 200
    document = r.json()["document"]
    assert document["title"] == "Writing in Markdown"
    assert document["tags"] == ["writing", "markdown"]
    assert document["assets"] == ["hello-md.png"]
    assert document["authors"][0]["email"] == "ada@example.org"

    r = client.get("/api/documents/no-such-post")
    assert r.status_code == 404


def test_web_app_html_and_assets(content_tree: Path) -> None:
    client = _client(content_tree)

    r = client.get("/api/documents/writing-in-markdown/html")
    assert r.status_code == 200
    assert "<h1>Hello</h1>" in r.json()["html"]

    r = client.get("/api/documents/writing-in-markdown/assets/hello-md.png")
    assert r.status_code == 200
    assert r.content == b"\x89PNG fake"
    assert r.headers["content-type"] == "image/png"

    r = client.get("/api/documents/writing-in-markdown/assets/missing.png")
    assert r.status_code == 404


def test_web_app_convert_encodes_binary_as_base64(
    content_tree: Path, fake_converter: Callable[..., Path]
) -> None:
    client = _client(content_tree, pandoc_bin=str(fake_converter()))

    r = client.get("/api/documents/writing-in-pandoc-markdown/convert", params={"format": "pdf"})
    assert r.status_code == 200
    payload = r.json()
    assert payload["encoding"] == "base64"
    assert base64.b64decode(payload["content"]) == b"%PDF-1.4 fake"

    r = client.post("/api/documents/writing-in-markdown/convert", json={"format": "plain"})
    assert r.status_code == 200
    payload = r.json()
    assert payload["encoding"] == "utf-8"
    assert "from: html" in payload["content"]

    r = client.get("/api/documents/writing-in-markdown/convert", params={"format": "--lua-filter=x"})
    assert r.status_code == 400


def test_web_app_surfaces_converter_failures(content_tree: Path, fake_converter: Callable[..., Path]) -> None:
    client = _client(content_tree, pandoc_bin=str(fake_converter(exit_code=2)))

    r = client.get("/api/documents/writing-in-pandoc-markdown/html")
    assert r.status_code == 502
    assert "fake converter warning" in r.json()["detail"]


def test_web_app_citations(content_tree: Path, fake_converter: Callable[..., Path]) -> None:
    client = _client(content_tree, citeproc_bin=str(fake_converter("fake-citeproc", stdout=CITEPROC_YAML)))

    r = client.get("/api/documents/writing-in-pandoc-markdown/citations")
    assert r.status_code == 200
    citations = r.json()["citations"]
    assert citations[0]["id"] == "chocolate"
    assert citations[0]["issued"] == [{"year": 1989, "month": None}]

    r = client.get("/api/documents/writing-in-markdown/citations")
    assert r.status_code == 200
    assert r.json()["citations"] is None


def test_web_app_rebuild_and_status(content_tree: Path) -> None:
    client = _client(content_tree)
    write_manifest(content_tree / "broken", {"format": "pandoc", "title": "Broken", "date": "not-a-date"})
    write_manifest(content_tree / "fresh", {"format": "pandoc", "title": "Fresh", "date": "2024-01-01"})

    r = client.post("/api/index/rebuild")
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert r.json()["count"] == 4

    r = client.get("/api/index/status")
    status = r.json()
    assert status["generation"] == 2
    assert [issue["kind"] for issue in status["issues"]] == ["DateValidationError"]

    r = client.get("/api/documents?limit=1")
    assert r.json()["documents"][0]["title"] == "Fresh"


def test_web_app_serves_documents_with_non_ascii_titles(tmp_path: Path) -> None:
    write_manifest(tmp_path / "hello", {"format": "pandoc", "title": "你好世界", "date": "2022-01-01"})
    write_manifest(tmp_path / "privet", {"format": "pandoc", "title": "Привет мир", "date": "2022-01-02"})
    client = _client(tmp_path)

    r = client.get("/api/documents")
    assert [doc["slug"] for doc in r.json()["documents"]] == ["привет-мир", "你好世界"]

    r = client.get("/api/documents/" + quote("привет-мир"))
    assert r.status_code == 200
    assert r.json()["document"]["title"] == "Привет мир"
