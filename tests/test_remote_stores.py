from datetime import datetime

import boto3
import pytest
from botocore.stub import ANY, Stubber

from app.core.exceptions import RemoteStoreError
from app.services.blob_store_service import MAX_BATCH_DELETE_KEYS, S3BlobStore
from app.services.cdn_service import CloudFrontInvalidator, key_to_path

BUCKET = "blog-files-test"


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="ap-northeast-2",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def store(s3_client):
    return S3BlobStore(BUCKET, client=s3_client, region="ap-northeast-2")


def test_batch_delete_reports_per_key_errors(store, s3_client):
    with Stubber(s3_client) as stub:
        stub.add_response(
            "delete_objects",
            {
                "Deleted": [{"Key": "public/images/a.png"}],
                "Errors": [{"Key": "public/images/b.png", "Code": "AccessDenied", "Message": "Access Denied"}],
            },
            {
                "Bucket": BUCKET,
                "Delete": {
                    "Objects": [{"Key": "public/images/a.png"}, {"Key": "public/images/b.png"}],
                    "Quiet": False,
                },
            },
        )
        result = store.batch_delete(["public/images/a.png", "", "public/images/b.png"])

    assert result.deleted_keys == ["public/images/a.png"]
    assert result.failed_keys == ["public/images/b.png"]
    assert result.errors[0].code == "AccessDenied"
    assert result.is_partial


def test_batch_delete_whole_call_failure_raises(store, s3_client):
    with Stubber(s3_client) as stub:
        stub.add_client_error("delete_objects", service_error_code="InternalError", http_status_code=500)
        with pytest.raises(RemoteStoreError) as excinfo:
            store.batch_delete(["public/images/a.png"])

    assert excinfo.value.operation == "batch_delete"


def test_batch_delete_limits(store):
    assert store.batch_delete(["", "  "]).deleted_keys == []
    with pytest.raises(ValueError):
        store.batch_delete([f"k{n}" for n in range(MAX_BATCH_DELETE_KEYS + 1)])


def test_exists(store, s3_client):
    with Stubber(s3_client) as stub:
        stub.add_response("head_object", {"ContentLength": 3}, {"Bucket": BUCKET, "Key": "present"})
        stub.add_client_error("head_object", service_error_code="404", http_status_code=404)
        stub.add_client_error("head_object", service_error_code="403", http_status_code=403)

        assert store.exists("present") is True
        assert store.exists("gone") is False
        with pytest.raises(RemoteStoreError):
            store.exists("forbidden")


def test_put_failure_raises(store, s3_client):
    with Stubber(s3_client) as stub:
        stub.add_client_error("put_object", service_error_code="NoSuchBucket", http_status_code=404)
        with pytest.raises(RemoteStoreError) as excinfo:
            store.put("public/images/x.png", b"data", "image/png")

    assert excinfo.value.key == "public/images/x.png"


def test_presigned_get_and_public_url(s3_client):
    store = S3BlobStore(BUCKET, client=s3_client, region="ap-northeast-2")
    url = store.presigned_get("private/doc.pdf", 10)

    assert "private/doc.pdf" in url
    assert store.public_url("public/a.png") == f"https://{BUCKET}.s3.ap-northeast-2.amazonaws.com/public/a.png"
    assert S3BlobStore(BUCKET, client=s3_client, cdn_domain="cdn.example.com").public_url("public/a.png") == (
        "https://cdn.example.com/public/a.png"
    )
    with pytest.raises(RemoteStoreError):
        store.presigned_get("  ", 10)


def test_key_to_path():
    assert key_to_path("public/a.png") == "/public/a.png"
    assert key_to_path("/public/a.png") == "/public/a.png"


def test_cloudfront_invalidation():
    client = boto3.client(
        "cloudfront",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    invalidator = CloudFrontInvalidator("E123EXAMPLE", client=client)

    with Stubber(client) as stub:
        stub.add_response(
            "create_invalidation",
            {
                "Location": "https://cloudfront.amazonaws.com/2020-05-31/distribution/E123EXAMPLE/invalidation/I1",
                "Invalidation": {
                    "Id": "I1",
                    "Status": "InProgress",
                    "CreateTime": datetime(2026, 3, 10, 3, 0, 0),
                    "InvalidationBatch": {
                        "Paths": {"Quantity": 2, "Items": ["/a.png", "/b.png"]},
                        "CallerReference": "ref",
                    },
                },
            },
            {
                "DistributionId": "E123EXAMPLE",
                "InvalidationBatch": {
                    "Paths": {"Quantity": 2, "Items": ["/a.png", "/b.png"]},
                    "CallerReference": ANY,
                },
            },
        )
        assert invalidator.invalidate(["a.png", "/b.png"]) == "I1"


def test_cloudfront_disabled_without_distribution():
    invalidator = CloudFrontInvalidator("")
    assert not invalidator.enabled
    assert invalidator.invalidate(["a.png"]) is None
