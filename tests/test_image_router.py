"""이미지 API (upload, list, get, original, compressed, compressed-size, delete) 테스트."""

import io

from PIL import Image


def _make_upload_file(
    filename: str = "test.png", fmt: str = "PNG", content_type: str = "image/png"
) -> tuple[str, io.BytesIO, str]:
    """테스트용 이미지 파일을 메모리에서 생성한다."""
    buf = io.BytesIO()
    Image.new("RGB", (100, 100), color="blue").save(buf, format=fmt)
    buf.seek(0)
    return (filename, buf, content_type)


def _upload(client, **kwargs) -> dict:
    resp = client.post("/api/images/upload", files={"file": _make_upload_file(**kwargs)})
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestUpload:
    def test_upload_image(self, client, blobs):
        """업로드 → 200 + 레코드 반환, 원본 파일 저장."""
        data = _upload(client)

        assert "id" in data
        assert data["original_name"] == "test.png"
        assert data["extension"] == ".png"
        assert data["content_type"] == "image/png"
        assert data["is_compressed"] is False
        assert data["compressible"] is True
        assert data["stored_name"].startswith("test_")
        assert data["original_path"] == f"uploads/{data['stored_name']}"
        assert blobs.exists(data["original_path"])

    def test_upload_non_image(self, client):
        resp = client.post(
            "/api/images/upload",
            files={"file": ("notes", io.BytesIO(b"hello"), "text/plain")},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["compressible"] is False
        assert data["extension"] == ".bin"
        assert data["size_bytes"] == 5

    def test_upload_empty_file(self, client):
        resp = client.post(
            "/api/images/upload",
            files={"file": ("empty.png", io.BytesIO(b""), "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json()["error_code"] == "EMPTY_UPLOAD"

    def test_long_extension_truncated(self, client):
        data = _upload(client, filename="a.verylongextension")
        assert data["extension"] == ".verylonge"


class TestListAndGet:
    def test_list_images(self, client):
        _upload(client, filename="a.png")
        _upload(client, filename="b.png")

        resp = client.get("/api/images/")
        assert resp.status_code == 200
        assert len(resp.json()) == 2

    def test_list_limit(self, client):
        for i in range(3):
            _upload(client, filename=f"{i}.png")

        resp = client.get("/api/images/", params={"limit": 2})
        assert len(resp.json()) == 2

    def test_get_image(self, client):
        image_id = _upload(client)["id"]

        resp = client.get(f"/api/images/{image_id}")
        assert resp.status_code == 200
        assert resp.json()["id"] == image_id

    def test_image_not_found(self, client):
        """존재하지 않는 이미지 조회 → 404 IMAGE_NOT_FOUND."""
        resp = client.get("/api/images/99999")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "IMAGE_NOT_FOUND"


class TestOriginal:
    def test_download_original(self, client):
        file = _make_upload_file()
        original = file[1].getvalue()
        image_id = client.post("/api/images/upload", files={"file": file}).json()["id"]

        resp = client.get(f"/api/images/{image_id}/original")
        assert resp.status_code == 200
        assert resp.content == original
        assert resp.headers["content-type"] == "image/png"

    def test_missing_original_blob(self, client, blobs):
        data = _upload(client)
        blobs.delete(data["original_path"])

        resp = client.get(f"/api/images/{data['id']}/original")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "BLOB_NOT_FOUND"


class TestCompressed:
    def test_compress_then_cache_hit(self, client):
        image_id = _upload(client)["id"]

        first = client.get(f"/api/images/{image_id}/compressed", params={"quality": 60})
        second = client.get(f"/api/images/{image_id}/compressed", params={"quality": 90})

        assert first.status_code == 200
        assert first.headers["x-cache"] == "MISS"
        assert second.headers["x-cache"] == "HIT"
        assert first.content == second.content
        assert first.headers["content-type"] == "image/png"
        assert "compressed_60_test.png" in first.headers["content-disposition"]
        assert Image.open(io.BytesIO(first.content)).size == (100, 100)

        record = client.get(f"/api/images/{image_id}").json()
        assert record["is_compressed"] is True
        assert record["compressed_size_bytes"] == len(first.content)

    def test_jpeg(self, client):
        image_id = _upload(client, filename="p.jpg", fmt="JPEG", content_type="image/jpeg")["id"]

        resp = client.get(f"/api/images/{image_id}/compressed")
        assert resp.status_code == 200
        assert Image.open(io.BytesIO(resp.content)).format == "JPEG"

    def test_compressed_size(self, client):
        upload = _upload(client)

        resp = client.get(f"/api/images/{upload['id']}/compressed-size")
        assert resp.status_code == 200
        data = resp.json()
        assert set(data) == {"compressed_size_kb", "original_size_kb", "compression_ratio"}
        assert data["original_size_kb"] == round(upload["size_bytes"] / 1024, 1)

    def test_tiff_cannot_be_compressed(self, client):
        image_id = _upload(client, filename="t.tiff", fmt="TIFF", content_type="image/tiff")["id"]

        resp = client.get(f"/api/images/{image_id}/compressed")
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "UNSUPPORTED_FORMAT"
        assert client.get(f"/api/images/{image_id}").json()["is_compressed"] is False

    def test_non_image_cannot_be_compressed(self, client):
        resp = client.post(
            "/api/images/upload",
            files={"file": ("notes.txt", io.BytesIO(b"hello"), "text/plain")},
        )
        image_id = resp.json()["id"]

        resp = client.get(f"/api/images/{image_id}/compressed")
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "UNSUPPORTED_FORMAT"

    def test_corrupt_image(self, client):
        resp = client.post(
            "/api/images/upload",
            files={"file": ("bad.png", io.BytesIO(b"not a png"), "image/png")},
        )
        image_id = resp.json()["id"]

        resp = client.get(f"/api/images/{image_id}/compressed")
        assert resp.status_code == 422
        assert resp.json()["error_code"] == "DECODE_ERROR"

    def test_missing_original(self, client, blobs):
        data = _upload(client)
        blobs.delete(data["original_path"])

        resp = client.get(f"/api/images/{data['id']}/compressed")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "BLOB_NOT_FOUND"

    def test_unknown_image(self, client):
        resp = client.get("/api/images/99999/compressed")
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "IMAGE_NOT_FOUND"

    def test_quality_out_of_range(self, client):
        image_id = _upload(client)["id"]

        for path in ("compressed", "compressed-size"):
            for quality in (0, 101):
                resp = client.get(f"/api/images/{image_id}/{path}", params={"quality": quality})
                assert resp.status_code == 400
                assert resp.json()["error_code"] == "INVALID_QUALITY"


class TestDelete:
    def test_delete_image_and_files(self, client, blobs):
        """이미지 삭제 → 레코드, 원본, 압축본 모두 제거."""
        data = _upload(client)
        client.get(f"/api/images/{data['id']}/compressed")
        compressed_path = client.get(f"/api/images/{data['id']}").json()["compressed_path"]

        resp = client.delete(f"/api/images/{data['id']}")
        assert resp.status_code == 200

        assert not blobs.exists(data["original_path"])
        assert not blobs.exists(compressed_path)
        resp = client.get(f"/api/images/{data['id']}")
        assert resp.status_code == 404

    def test_delete_unknown(self, client):
        resp = client.delete("/api/images/99999")
        assert resp.status_code == 404


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
