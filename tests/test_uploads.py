import io

import pytest
from fastapi import UploadFile
from sqlalchemy.exc import OperationalError
from starlette.datastructures import Headers

from poster_shop import config
from poster_shop.models import Upload
from poster_shop.uploads import save_upload


def test_upload_photo(client, upload_dir, TestingSessionLocal):
    response = client.post(
        "/api/upload",
        files={"photo": ("family.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["filename"].endswith("-family.jpg")
    assert body["url"] == f"/uploads/{body['filename']}"
    assert (upload_dir / body["filename"]).read_bytes() == b"\xff\xd8\xff fake jpeg"

    db = TestingSessionLocal()
    record = db.get(Upload, body["upload_id"])
    assert record.original_name == "family.jpg"
    assert record.size == len(b"\xff\xd8\xff fake jpeg")
    db.close()


def test_upload_strips_directories_from_filename(client, upload_dir):
    response = client.post(
        "/api/upload",
        files={"photo": ("../../etc/me.png", b"png", "image/png")},
    )

    assert response.status_code == 200
    assert "/" not in response.json()["filename"]
    assert len(list(upload_dir.iterdir())) == 1


def test_upload_rejects_wrong_type(client, upload_dir, TestingSessionLocal):
    response = client.post(
        "/api/upload",
        files={"photo": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid file type"
    db = TestingSessionLocal()
    assert db.query(Upload).count() == 0
    db.close()


def test_upload_rejects_oversized_file(client, upload_dir, monkeypatch, TestingSessionLocal):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)

    response = client.post(
        "/api/upload",
        files={"photo": ("big.webp", b"x" * 11, "image/webp")},
    )

    assert response.status_code == 413
    assert list(upload_dir.iterdir()) == []
    db = TestingSessionLocal()
    assert db.query(Upload).count() == 0
    db.close()


def test_upload_requires_a_file(client):
    response = client.post("/api/upload")
    assert response.status_code == 422


def test_upload_accepts_file_at_size_limit(client, upload_dir, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 10)

    response = client.post(
        "/api/upload",
        files={"photo": ("exact.webp", b"x" * 10, "image/webp")},
    )

    assert response.status_code == 200
    assert (upload_dir / response.json()["filename"]).stat().st_size == 10


def test_failed_commit_removes_written_file(db, upload_dir, mocker):
    photo = UploadFile(
        file=io.BytesIO(b"\x89PNG fake"),
        filename="family.png",
        headers=Headers({"content-type": "image/png"}),
    )
    mocker.patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")))

    with pytest.raises(OperationalError):
        save_upload(db, photo)

    assert list(upload_dir.iterdir()) == []
