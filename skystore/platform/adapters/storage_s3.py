import logging
import boto3
from botocore.client import Config
from botocore.exceptions import ClientError
from skystore.platform.ports.object_storage import ObjectStoragePort
from skystore.core.config import Settings, settings as default_settings
from skystore.core.errors import ObjectNotFoundError

log = logging.getLogger("storage.s3")

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}

def _is_not_found(err: ClientError) -> bool:
    return str(err.response.get("Error", {}).get("Code")) in _NOT_FOUND_CODES

class S3Storage(ObjectStoragePort):
    def __init__(self, settings: Settings | None = None, client=None):
        settings = settings or default_settings
        self.bucket = settings.S3_BUCKET
        self.region = settings.S3_REGION
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=settings.S3_ACCESS_KEY,
                aws_secret_access_key=settings.S3_SECRET_KEY,
                region_name=settings.S3_REGION,
            )
            client = session.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                config=Config(
                    signature_version="s3v4",
                    connect_timeout=settings.S3_CONNECT_TIMEOUT,
                    read_timeout=settings.S3_READ_TIMEOUT,
                    retries={"max_attempts": settings.S3_MAX_ATTEMPTS, "mode": "standard"},
                    # MinIO serves buckets by path, not by virtual host
                    s3={"addressing_style": "path"},
                ),
            )
        self.s3 = client

    def ensure_bucket(self) -> None:
        try:
            self.s3.head_bucket(Bucket=self.bucket)
            return
        except ClientError as e:
            if not _is_not_found(e):
                raise
        kwargs = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        self.s3.create_bucket(**kwargs)
        log.info("Created bucket: %s", self.bucket)

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        self.s3.put_object(
            Bucket=self.bucket, Key=key, Body=data,
            ContentType=content_type, ContentLength=len(data),
        )
        log.info("Uploaded object: %s (%d bytes)", key, len(data))

    def get_bytes(self, key: str) -> bytes:
        try:
            res = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(f"Object not found: {key}", details={"key": key}) from e
            raise
        return res["Body"].read()

    def exists(self, key: str) -> bool:
        try:
            self.s3.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _is_not_found(e):
                return False
            raise

    def delete(self, key: str) -> None:
        self.s3.delete_object(Bucket=self.bucket, Key=key)
        log.info("Deleted object: %s", key)

    def presign_download(self, key: str, expires_seconds: int = 86400) -> str:
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_seconds,
        )
