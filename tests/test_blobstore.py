# PhotoSync Blob Store Tests
# Tests for blob naming, the local store and the S3 store

import io
from pathlib import Path
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from photosync.blobstore import LocalBlobStore, create_blob_store
from photosync.blobstore.base import blob_name_for_code, extract_blob_name, sanitize_blob_name
from photosync.blobstore.s3 import S3BlobStore
from photosync.config.schema import PhotoSyncConfig
from photosync.errors import BlobNotFoundError, PermanentStoreError, TransientStoreError


class TestBlobNames:
    """Tests for blob name helpers."""

    def test_sanitize(self):
        assert sanitize_blob_name("P 001/ä") == "P_001_ä"
        assert sanitize_blob_name("../P1") == "_P1"
        assert sanitize_blob_name("a:b*c") == "a_b_c"

    def test_empty_becomes_uuid(self):
        name = sanitize_blob_name("...")
        assert len(name) == 36

    def test_blob_name_for_code(self):
        assert blob_name_for_code("P001") == "P001.jpg"

    def test_extract_from_plain_name(self):
        assert extract_blob_name("P001.jpg") == "P001.jpg"

    def test_extract_from_https(self):
        url = "https://account.blob.core.windows.net/photos/P001.jpg"
        assert extract_blob_name(url, "photos") == "P001.jpg"
        assert extract_blob_name(url) == "P001.jpg"

    def test_extract_from_s3(self):
        assert extract_blob_name("s3://bucket/P001.jpg", "bucket") == "P001.jpg"


class TestLocalBlobStore:
    """Tests for the directory-backed store."""

    def test_upload_download(self, temp_dir: Path):
        store = LocalBlobStore(temp_dir, container="photos")
        path = store.upload("P001", b"jpeg")

        assert path.startswith("file://")
        assert path.endswith("/photos/P001.jpg")
        assert store.exists(path)
        assert store.download(path) == b"jpeg"

    def test_upload_overwrites(self, temp_dir: Path):
        store = LocalBlobStore(temp_dir)
        store.upload("P001", b"one")
        path = store.upload("P001", b"two")
        assert store.download(path) == b"two"

    def test_download_missing(self, temp_dir: Path):
        store = LocalBlobStore(temp_dir)
        with pytest.raises(BlobNotFoundError):
            store.download("P404.jpg")

    def test_delete(self, temp_dir: Path):
        store = LocalBlobStore(temp_dir)
        path = store.upload("P001", b"x")

        assert store.delete(path) is True
        assert store.delete(path) is False
        assert not store.exists(path)

    def test_rejects_escape(self, temp_dir: Path):
        store = LocalBlobStore(temp_dir)
        with pytest.raises(PermanentStoreError):
            store.download("../../etc/passwd")

    def test_test_connection_creates_container(self, temp_dir: Path):
        store = LocalBlobStore(temp_dir / "new")
        assert store.test_connection() is True
        assert (temp_dir / "new" / "photos").is_dir()


@pytest.fixture
def s3_client():
    """S3 client with dummy credentials, never contacting AWS."""
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class TestS3BlobStore:
    """Tests for the S3 store using botocore's Stubber."""

    def test_upload(self, s3_client):
        store = S3BlobStore("photos", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_response(
                "put_object",
                {},
                {"Bucket": "photos", "Key": "P001.jpg", "Body": b"jpeg", "ContentType": "image/jpeg"},
            )
            assert store.upload("P001", b"jpeg") == "s3://photos/P001.jpg"
            stubber.assert_no_pending_responses()

    def test_download(self, s3_client):
        store = S3BlobStore("photos", client=s3_client)
        body = StreamingBody(io.BytesIO(b"jpeg"), 4)
        with Stubber(s3_client) as stubber:
            stubber.add_response("get_object", {"Body": body}, {"Bucket": "photos", "Key": "P001.jpg"})
            assert store.download("s3://photos/P001.jpg") == b"jpeg"

    def test_download_missing(self, s3_client):
        store = S3BlobStore("photos", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
            with pytest.raises(BlobNotFoundError):
                store.download("s3://photos/P404.jpg")

    def test_exists_false_on_404(self, s3_client):
        store = S3BlobStore("photos", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
            assert store.exists("s3://photos/P404.jpg") is False

    def test_access_denied_is_permanent(self, s3_client):
        store = S3BlobStore("photos", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
            with pytest.raises(PermanentStoreError):
                store.upload("P001", b"x")

    def test_unreachable_is_transient(self):
        client = MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://localhost:9000")
        store = S3BlobStore("photos", client=client)

        with pytest.raises(TransientStoreError):
            store.upload("P001", b"x")

    def test_test_connection(self, s3_client):
        store = S3BlobStore("photos", client=s3_client)
        with Stubber(s3_client) as stubber:
            stubber.add_response("head_bucket", {}, {"Bucket": "photos"})
            stubber.add_client_error("head_bucket", service_error_code="404", http_status_code=404)
            assert store.test_connection() is True
            assert store.test_connection() is False


class TestFactory:
    """Tests for create_blob_store."""

    def test_local_backend(self, temp_dir: Path):
        config = PhotoSyncConfig.model_validate(
            {"blob_store": {"backend": "local", "root": str(temp_dir), "container": "pics"}}
        )
        store = create_blob_store(config.blob_store)
        assert isinstance(store, LocalBlobStore)
        assert store.directory == temp_dir / "pics"
