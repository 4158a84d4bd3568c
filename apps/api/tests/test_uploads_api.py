from __future__ import annotations

import re
from pathlib import Path

ID_RE = re.compile(r"^[0-9a-f]{32}\.[a-z0-9]+$")


def test_upload_returns_envelope_with_ids(client, jpeg_bytes) -> None:
    res = client.post(
        "/upload",
        files=[
            ("files", ("holiday.jpg", jpeg_bytes, "image/jpeg")),
            ("files", ("notes.pdf", b"%PDF-1.4", "application/pdf")),
        ],
    )
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["count"] == 2
    first, second = body["data"]
    assert first["originalName"] == "holiday.jpg"
    assert ID_RE.match(first["id"]) and first["id"].endswith(".jpg")
    assert first["filename"] == first["id"]
    assert first["size"] == len(jpeg_bytes)
    assert first["mimetype"] == "image/jpeg"
    assert second["mimetype"] == "application/pdf"


def test_uploaded_bytes_round_trip(client, upload, jpeg_bytes) -> None:
    item = upload("photo.jpg", jpeg_bytes, "image/jpeg")
    res = client.get(f"/compression/download/{item['id']}")
    assert res.status_code == 200
    assert res.content == jpeg_bytes
    assert "attachment" in res.headers["content-disposition"]


def test_disallowed_mime_type_is_rejected_and_nothing_is_stored(client, settings) -> None:
    res = client.post(
        "/upload",
        files=[
            ("files", ("ok.png", b"\x89PNG", "image/png")),
            ("files", ("evil.sh", b"#!/bin/sh", "text/x-shellscript")),
        ],
    )
    assert res.status_code == 400
    body = res.json()
    assert body == {"success": False, "error": "Unsupported file type: text/x-shellscript", "code": "VALIDATION_ERROR"}
    assert [p.name for p in Path(settings.temp_dir).iterdir() if p.is_file()] == []


def test_upload_without_files_is_rejected(client) -> None:
    res = client.post("/upload", data={"nothing": "here"})
    assert res.status_code == 400
    assert res.json()["error"] == "No files were uploaded"


def test_too_many_files_are_rejected(client) -> None:
    files = [("files", (f"{i}.png", b"x", "image/png")) for i in range(11)]
    res = client.post("/upload", files=files)
    assert res.status_code == 400
    assert "at most 10" in res.json()["error"]


def test_oversize_upload_is_rejected(client) -> None:
    res = client.post("/upload", files=[("files", ("big.pdf", b"0" * (2 * 1024 * 1024 + 1), "application/pdf"))])
    assert res.status_code == 413
    assert res.json()["code"] == "FILE_TOO_LARGE"


def test_delete_then_fetch_is_404(client, upload) -> None:
    item = upload("doc.pdf", b"%PDF-1.4", "application/pdf")
    res = client.delete(f"/upload/{item['id']}")
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "File deleted successfully"}

    assert client.delete(f"/upload/{item['id']}").status_code == 404
    missing = client.get(f"/conversion/download/{item['id']}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "File not found"


def test_routes_are_also_served_under_api_prefix(client, jpeg_bytes) -> None:
    res = client.post("/api/upload", files=[("files", ("a.jpg", jpeg_bytes, "image/jpeg"))])
    assert res.status_code == 200
    artifact_id = res.json()["data"][0]["id"]
    assert client.get(f"/api/compression/download/{artifact_id}").content == jpeg_bytes


def test_traversal_ids_are_not_found(client) -> None:
    for bad in ("..%2F..%2Fetc%2Fpasswd", "passwd", ".work"):
        res = client.get(f"/compression/download/{bad}")
        assert res.status_code == 404
