# tests/test_file_service.py
"""Unit tests for uploaded file storage."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import io
import pytest
from unittest.mock import AsyncMock, MagicMock
from PIL import Image
from dealership.config import settings
from dealership.exceptions import BusinessRuleError, NotFoundError
from dealership.services import file_service


def make_upload(content=b"\xff\xd8\xff fake jpeg", filename="front.jpg", content_type="image/jpeg",
                size="actual"):
    buffer = io.BytesIO(content)
    upload = MagicMock()
    upload.filename = filename
    upload.content_type = content_type
    upload.size = len(content) if size == "actual" else size
    upload.read = AsyncMock(side_effect=lambda n=-1: buffer.read(n))
    return upload


def png_bytes(width=800, height=600):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def stored_path(upload_dir, url):
    return upload_dir / url[len("/api/files/"):]


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


class TestSaveUpload:
    @pytest.mark.asyncio
    async def test_file_stored_under_entity_and_month(self, upload_dir):
        stored = await file_service.save_upload(make_upload(), "vehicles", "12")

        assert stored["url"].startswith("/api/files/vehicles/")
        assert stored["filename"].startswith("12-")
        assert stored["filename"].endswith(".jpg")
        assert stored_path(upload_dir, stored["url"]).read_bytes() == b"\xff\xd8\xff fake jpeg"

    @pytest.mark.asyncio
    async def test_disallowed_type_rejected(self):
        with pytest.raises(BusinessRuleError):
            await file_service.save_upload(make_upload(filename="x.exe", content_type="application/x-msdownload"),
                                           "vehicles", "1")

    @pytest.mark.asyncio
    async def test_oversized_file_rejected(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 4)
        with pytest.raises(BusinessRuleError):
            await file_service.save_upload(make_upload(content=b"12345"), "vehicles", "1")

    @pytest.mark.asyncio
    async def test_declared_size_over_limit_rejected_before_reading(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 4)
        upload = make_upload(content=b"12345")

        with pytest.raises(BusinessRuleError):
            await file_service.save_upload(upload, "vehicles", "1")

        upload.read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_undeclared_size_stops_reading_past_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)
        monkeypatch.setattr(file_service, "READ_CHUNK_SIZE", 4)
        upload = make_upload(content=b"x" * 100, size=None)

        with pytest.raises(BusinessRuleError):
            await file_service.save_upload(upload, "vehicles", "1")

        assert upload.read.await_count == 3

    @pytest.mark.asyncio
    async def test_unknown_entity_type_rejected(self):
        with pytest.raises(BusinessRuleError):
            await file_service.save_upload(make_upload(), "deals", "1")


class TestThumbnails:
    @pytest.mark.asyncio
    async def test_image_gets_cropped_thumbnail(self, upload_dir):
        stored = await file_service.save_upload(make_upload(png_bytes(), "side.png", "image/png"), "vehicles", "4")

        thumb_url = stored["thumbnail_url"]
        assert thumb_url.endswith(f"/thumb_{stored['filename']}")
        with Image.open(stored_path(upload_dir, thumb_url)) as thumb:
            assert thumb.size == (300, 300)
            assert thumb.format == "PNG"

    @pytest.mark.asyncio
    async def test_documents_have_no_thumbnail(self):
        stored = await file_service.save_upload(make_upload(b"%PDF-1.4", "deed.pdf", "application/pdf"),
                                                "transactions", "9")
        assert stored["thumbnail_url"] is None

    @pytest.mark.asyncio
    async def test_undecodable_image_is_kept_without_thumbnail(self, upload_dir):
        stored = await file_service.save_upload(make_upload(), "vehicles", "5")

        assert stored["thumbnail_url"] is None
        assert stored_path(upload_dir, stored["url"]).exists()

    @pytest.mark.asyncio
    async def test_delete_removes_thumbnail_too(self, upload_dir):
        stored = await file_service.save_upload(make_upload(png_bytes(), "side.png", "image/png"), "vehicles", "4")

        file_service.delete_file(stored["url"])

        assert not stored_path(upload_dir, stored["url"]).exists()
        assert not stored_path(upload_dir, stored["thumbnail_url"]).exists()

    @pytest.mark.asyncio
    async def test_deleting_thumbnail_removes_original(self, upload_dir):
        stored = await file_service.save_upload(make_upload(png_bytes(), "side.png", "image/png"), "vehicles", "4")

        file_service.delete_file(stored["thumbnail_url"])

        assert not stored_path(upload_dir, stored["url"]).exists()


class TestStoredFiles:
    def test_mime_table(self):
        assert file_service.mime_type_for("a/b/report.PDF") == "application/pdf"
        assert file_service.mime_type_for("a/b/photo.jpeg") == "image/jpeg"
        assert file_service.mime_type_for("a/b/archive.zip") == "application/octet-stream"

    def test_path_traversal_refused(self):
        with pytest.raises(BusinessRuleError):
            file_service.resolve_path("../../etc/passwd")

    def test_missing_file_not_found(self):
        with pytest.raises(NotFoundError):
            file_service.stored_file("vehicles/2025/01/missing.jpg")

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, upload_dir):
        stored = await file_service.save_upload(make_upload(), "persons", "3")

        file_service.delete_file(stored["url"])

        with pytest.raises(NotFoundError):
            file_service.delete_file(stored["url"])


class TestFilesApi:
    def test_upload_then_serve(self, client, auth):
        resp = client.post("/api/upload", headers=auth,
                           data={"entity_type": "vehicles", "entity_id": "7"},
                           files={"file": ("doc.pdf", b"%PDF-1.4 test", "application/pdf")})
        assert resp.status_code == 200
        url = resp.json()["data"]["url"]

        served = client.get(url)
        assert served.status_code == 200
        assert served.headers["content-type"] == "application/pdf"
        assert served.content == b"%PDF-1.4 test"

    def test_image_upload_returns_servable_thumbnail(self, client, auth):
        resp = client.post("/api/upload", headers=auth,
                           data={"entity_type": "vehicles", "entity_id": "7"},
                           files={"file": ("front.png", png_bytes(), "image/png")})

        thumb_url = resp.json()["data"]["thumbnail_url"]
        served = client.get(thumb_url)
        assert served.status_code == 200
        assert served.headers["content-type"] == "image/png"

    def test_upload_requires_auth(self, client):
        resp = client.post("/api/upload", data={"entity_type": "vehicles", "entity_id": "7"},
                           files={"file": ("doc.pdf", b"%PDF", "application/pdf")})
        assert resp.status_code == 401
