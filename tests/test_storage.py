"""S3 storage gateway behaviour against a stubbed client."""

from __future__ import annotations

import asyncio

import boto3
import pytest
from botocore.stub import Stubber

from app.services.storage import StorageError, StorageGateway


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_bytes_upload_sets_metadata_and_urls(s3_client):
    gateway = StorageGateway(client=s3_client, bucket="lesson-bucket", region="us-east-1")

    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": "lesson-bucket",
                "Key": "images/scene-0.png",
                "Body": b"png-bytes",
                "CacheControl": "public, max-age=31536000",
                "ContentType": "image/png",
            },
        )
        stored = asyncio.run(
            gateway.upload(b"png-bytes", "images", filename="scene-0.png", content_type="image/png")
        )
        stubber.assert_no_pending_responses()

    assert stored.key == "images/scene-0.png"
    assert stored.storage_uri == "s3://lesson-bucket/images/scene-0.png"
    assert stored.public_url == "https://lesson-bucket.s3.amazonaws.com/images/scene-0.png"


def test_client_errors_become_storage_errors(s3_client):
    gateway = StorageGateway(client=s3_client, bucket="lesson-bucket", region="us-east-1")

    with Stubber(s3_client) as stubber:
        stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StorageError, match="images/x.png"):
            asyncio.run(gateway.upload(b"data", "images", filename="x.png"))


def test_empty_payload_is_rejected(s3_client):
    gateway = StorageGateway(client=s3_client, bucket="lesson-bucket", region="us-east-1")

    with pytest.raises(StorageError):
        asyncio.run(gateway.upload(b"", "images"))


def test_public_url_prefers_configured_base():
    regional = StorageGateway(client=None, bucket="b", region="ap-south-1")
    cdn = StorageGateway(client=None, bucket="b", region="ap-south-1", public_base_url="https://cdn.example.com/")

    assert regional.public_url("audio/a.mp3") == "https://b.s3.ap-south-1.amazonaws.com/audio/a.mp3"
    assert cdn.public_url("audio/a.mp3") == "https://cdn.example.com/audio/a.mp3"
