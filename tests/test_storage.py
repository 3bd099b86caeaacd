import boto3
import pytest
from moto import mock_aws

from stackwright.api.exceptions import UploadError
from stackwright.storage.s3 import S3Storage

BUCKET = "artifacts"
KEY = "devATexampleDOTcom/shop/ShopApiGetCart.zip"


@pytest.fixture
def s3():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def bundle(tmp_path):
    path = tmp_path / "bundle.zip"
    path.write_bytes(b"bundle bytes")
    return path


def test_bucket_required():
    with pytest.raises(ValueError):
        S3Storage({})


@pytest.mark.asyncio
async def test_upload_if_changed_skips_identical_checksum(s3, bundle):
    async with S3Storage({"bucket": BUCKET}, client=s3) as storage:
        assert await storage.upload_if_changed(bundle, KEY, "abc") is True
        assert await storage.upload_if_changed(bundle, KEY, "abc") is False
        assert await storage.upload_if_changed(bundle, KEY, "def") is True

        metadata = await storage.get_metadata(KEY)

    assert metadata["metadata"] == {"checksum": "def"}
    assert metadata["size"] == len(b"bundle bytes")


@pytest.mark.asyncio
async def test_upload_reports_progress(s3, bundle):
    progress = []

    async with S3Storage({"bucket": BUCKET}, client=s3) as storage:
        await storage.upload(bundle, KEY, callback=lambda done, total: progress.append((done, total)))

    assert progress[-1] == (len(b"bundle bytes"), len(b"bundle bytes"))


@pytest.mark.asyncio
async def test_object_operations(s3, bundle, tmp_path):
    async with S3Storage({"bucket": BUCKET}, client=s3) as storage:
        assert await storage.exists(KEY) is False
        assert await storage.get_metadata(KEY) is None

        await storage.upload(bundle, KEY)
        assert await storage.exists(KEY) is True
        assert await storage.list("devATexampleDOTcom/") == [KEY]

        target = tmp_path / "out" / "bundle.zip"
        assert await storage.download(KEY, target) is True
        assert target.read_bytes() == b"bundle bytes"

        await storage.delete(KEY)
        assert await storage.exists(KEY) is False


@pytest.mark.asyncio
async def test_upload_to_missing_bucket_fails(s3, bundle):
    async with S3Storage({"bucket": "missing"}, client=s3) as storage:
        with pytest.raises(UploadError):
            await storage.upload(bundle, KEY)
