import asyncio
import os
import time

import httpx
import requests

from shop.main import app


class FakeResponse:
    status_code = 200
    headers = {"Content-Type": "text/plain"}

    def iter_content(self, chunk_size):
        yield b"remote "
        yield b"content"


def test_upload_keeps_original_name_and_flags_executables(client, tmp_path):
    r = client.post(
        "/upload/product-image",
        files={"file": ("payload.exe", b"MZ fake binary", "application/octet-stream")},
        data={"productId": "7"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["file"]["filename"] == "payload.exe"
    assert body["metadata"]["dangerous"] is True
    assert body["metadata"]["metadata"] == {"productId": "7"}
    assert (tmp_path / "uploads" / "payload.exe").read_bytes() == b"MZ fake binary"


def test_upload_multiple(client):
    r = client.post("/upload/multiple", files=[
        ("files", ("a.txt", b"aaa", "text/plain")),
        ("files", ("b.txt", b"bb", "text/plain")),
    ])
    body = r.json()
    assert body["message"] == "2 files uploaded successfully"
    assert body["systemInfo"]["totalUploaded"] == 5


def test_serve_uploaded_file(client):
    client.post("/upload/product-image", files={"file": ("pic.png", b"png-bytes", "image/png")})
    r = client.get("/upload/files/pic.png")
    assert r.status_code == 200
    assert r.content == b"png-bytes"


def test_missing_file_lists_available(client):
    client.post("/upload/product-image", files={"file": ("pic.png", b"png-bytes", "image/png")})
    r = client.get("/upload/files/nope.png")
    assert r.status_code == 404
    assert r.json()["availableFiles"] == ["pic.png"]


def test_path_traversal_escapes_upload_dir(client, tmp_path):
    (tmp_path / "outside.txt").write_text("not for you")
    r = client.get("/upload/files/..%2Foutside.txt")
    assert r.status_code == 200
    assert r.text == "not for you"


def test_download_with_custom_base_path(client, tmp_path):
    secret_dir = tmp_path / "private"
    secret_dir.mkdir()
    (secret_dir / "keys.txt").write_text("k3y")
    r = client.get("/upload/download/keys.txt", params={"path": str(secret_dir)})
    assert r.status_code == 200
    assert r.content == b"k3y"
    assert r.headers["content-disposition"] == 'attachment; filename="keys.txt"'


def test_list_any_directory(client, tmp_path):
    (tmp_path / "listed.txt").write_text("x")
    body = client.get("/upload/list", params={"dir": str(tmp_path)}).json()
    assert "listed.txt" in [f["filename"] for f in body["files"]]
    assert "PATH" in body["systemInfo"]["env"]


def test_delete_outside_upload_dir(client, tmp_path):
    victim = tmp_path / "victim.txt"
    victim.write_text("bye")
    body = client.post("/upload/delete/victim.txt", params={"path": str(tmp_path)}).json()
    assert body["success"] is True
    assert not os.path.exists(victim)


def test_from_url_network_error(client, monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", refuse)
    body = client.post("/upload/from-url", json={"url": "http://127.0.0.1:9/file.bin"}).json()
    assert body["success"] is False
    assert body["networkError"] == "ConnectionError"


def test_from_url_saves_basename(client, monkeypatch, tmp_path):
    monkeypatch.setattr(requests, "get", lambda *a, **kw: FakeResponse())
    body = client.post("/upload/from-url", json={"url": "http://example.test/files/report.txt"}).json()
    assert body["savedAs"] == "report.txt"
    assert (tmp_path / "uploads" / "report.txt").read_text() == "remote content"


def test_slow_download_does_not_stall_other_requests(client, monkeypatch):
    def slow_get(*args, **kwargs):
        time.sleep(1.0)
        return FakeResponse()

    monkeypatch.setattr(requests, "get", slow_get)

    async def download_then_health():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://shop.test") as ac:
            download = asyncio.create_task(
                ac.post("/upload/from-url", json={"url": "http://slow.test/big.bin"})
            )
            await asyncio.sleep(0.2)
            started = time.monotonic()
            health = await ac.get("/api/health")
            elapsed = time.monotonic() - started
            saved = await download
            return health, elapsed, saved

    health, elapsed, saved = asyncio.run(download_then_health())
    assert health.status_code == 200
    assert elapsed < 0.6
    assert saved.json()["savedAs"] == "big.bin"
