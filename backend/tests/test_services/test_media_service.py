"""
Unit tests for MediaService (blob store is mocked)

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock, patch

import httpx

from storefront.domain.media import MediaAsset, MAX_IMAGE_BYTES
from storefront.services.media_service import MediaService, validate_image


def _asset(public_id="products/abc.jpg") -> MediaAsset:
    return MediaAsset(id=1, public_id=public_id, url=f"https://cdn.example.com/{public_id}")


@pytest.fixture
def storage():
    mock = MagicMock()
    mock.get_public_url.side_effect = lambda path: f"https://cdn.example.com/{path}"
    return mock


@pytest.fixture
def media_repo():
    repo = MagicMock()
    repo.create.side_effect = lambda data: MediaAsset(id=1, **data)
    return repo


@pytest.fixture
def service(media_repo, storage):
    return MediaService(media_repo=media_repo, storage=storage)


class TestValidateImage:

    def test_allowed_types(self):
        assert validate_image("image/jpeg", 100) == "jpg"
        assert validate_image("image/PNG; charset=binary", 100) == "png"

    def test_rejects_other_types(self):
        with pytest.raises(ValueError, match="Only JPEG, PNG, WebP and GIF"):
            validate_image("application/pdf", 100)

    def test_rejects_empty_and_oversize(self):
        with pytest.raises(ValueError, match="empty"):
            validate_image("image/gif", 0)
        with pytest.raises(ValueError, match="max 5 MB"):
            validate_image("image/gif", MAX_IMAGE_BYTES + 1)


class TestUpload:

    def test_upload_stores_under_folder(self, service, storage, media_repo):
        asset = service.upload(b"\xff\xd8data", "dress.jpg", "image/jpeg", folder="/banners/", alt="Dress")

        path = storage.upload.call_args[0][0]
        assert path.startswith("banners/") and path.endswith(".jpg")
        assert storage.upload.call_args[0][2] == {"content-type": "image/jpeg"}
        assert asset.url == f"https://cdn.example.com/{path}"
        assert media_repo.create.call_args[0][0]['size_bytes'] == 6

    def test_failed_record_removes_blob(self, service, storage, media_repo):
        media_repo.create.side_effect = Exception("db down")

        with pytest.raises(Exception, match="db down"):
            service.upload(b"data", "a.png", "image/png")

        path = storage.upload.call_args[0][0]
        storage.remove.assert_called_once_with([path])

    def test_upload_many_flags_first_as_main(self, service):
        files = [(b"one", "1.jpg", "image/jpeg"), (b"two", "2.webp", "image/webp")]

        assets = service.upload_many(files)

        assert [a.is_main for a in assets] == [True, False]

    def test_upload_many_validates_before_uploading(self, service, storage):
        files = [(b"one", "1.jpg", "image/jpeg"), (b"two", "2.txt", "text/plain")]

        with pytest.raises(ValueError):
            service.upload_many(files)

        storage.upload.assert_not_called()

    def test_upload_many_limit(self, service):
        with pytest.raises(ValueError, match="Maximum 6 images"):
            service.upload_many([(b"x", "x.jpg", "image/jpeg")] * 7)

    def test_upload_from_url_fetch_error(self, service):
        with patch('storefront.services.media_service.httpx.Client') as mock_client:
            mock_client.return_value.__enter__.return_value.stream.side_effect = httpx.ConnectError("refused")

            with pytest.raises(ValueError, match="Could not fetch image"):
                service.upload_from_url("https://images.example.com/dress.jpg")

    def test_upload_from_url(self, service, storage):
        response = MagicMock(headers={"content-type": "image/webp"})
        response.iter_bytes.return_value = iter([b"image-", b"bytes"])
        with patch('storefront.services.media_service.httpx.Client') as mock_client:
            mock_client.return_value.__enter__.return_value.stream.return_value.__enter__.return_value = response

            asset = service.upload_from_url("https://images.example.com/a/dress.webp?w=800")

        storage.upload.assert_called_once()
        assert b"image-bytes" in storage.upload.call_args[0]
        assert asset.filename == "dress.webp"
        assert asset.public_id.endswith(".webp")

    def test_upload_from_url_stops_reading_oversize_body(self, service, storage):
        chunk = b"x" * (1024 * 1024)
        read = []

        def chunks():
            for _ in range(50):
                read.append(chunk)
                yield chunk

        response = MagicMock(headers={"content-type": "image/jpeg"})
        response.iter_bytes.return_value = chunks()
        with patch('storefront.services.media_service.httpx.Client') as mock_client:
            mock_client.return_value.__enter__.return_value.stream.return_value.__enter__.return_value = response

            with pytest.raises(ValueError, match="too large"):
                service.upload_from_url("https://images.example.com/huge.jpg")

        assert len(read) * len(chunk) <= MAX_IMAGE_BYTES + len(chunk)
        storage.upload.assert_not_called()

    def test_upload_from_url_rejects_declared_oversize(self, service, storage):
        response = MagicMock(headers={"content-type": "image/jpeg", "content-length": str(MAX_IMAGE_BYTES + 1)})
        with patch('storefront.services.media_service.httpx.Client') as mock_client:
            mock_client.return_value.__enter__.return_value.stream.return_value.__enter__.return_value = response

            with pytest.raises(ValueError, match="too large"):
                service.upload_from_url("https://images.example.com/huge.jpg")

        response.iter_bytes.assert_not_called()


class TestDelete:

    def test_unknown_public_id(self, service, media_repo, storage):
        media_repo.find_by_public_id.return_value = None

        assert service.delete("products/missing.jpg") is False
        storage.remove.assert_not_called()

    def test_delete(self, service, media_repo, storage):
        media_repo.find_by_public_id.return_value = _asset()

        assert service.delete("products/abc.jpg") is True
        storage.remove.assert_called_once_with(["products/abc.jpg"])
        media_repo.delete_by_public_id.assert_called_once_with("products/abc.jpg")
