import boto3
from botocore.exceptions import ClientError
from resume_builder.config import get_settings
from resume_builder.utils.logger import get_logger

logger = get_logger("storage")

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _get_s3_client():
    settings = get_settings()
    return boto3.client(
        "s3",
        region_name=settings.aws_s3_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )


class StorageService:
    """S3-backed store for generated PDFs.

    Logical ids look like ``resumes/<version_id>``; the object key adds
    the ``.pdf`` extension.
    """

    def __init__(self, client=None, bucket: str = None, public_base_url: str = None):
        settings = get_settings()
        self._client = client
        self.bucket = bucket or settings.aws_s3_bucket
        self.public_base_url = (
            public_base_url
            or settings.storage_public_base_url
            or f"https://{self.bucket}.s3.{settings.aws_s3_region}.amazonaws.com"
        ).rstrip("/")

    @property
    def client(self):
        if self._client is None:
            self._client = _get_s3_client()
        return self._client

    @staticmethod
    def object_key(logical_id: str) -> str:
        return f"{logical_id}.pdf"

    def public_url_for(self, logical_id: str) -> str:
        """Deterministic URL for an object; no network call."""
        return f"{self.public_base_url}/{self.object_key(logical_id)}"

    def upload(self, data: bytes, logical_id: str) -> str:
        """Store PDF bytes and return their durable URL. Raises on failure."""
        key = self.object_key(logical_id)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType="application/pdf",
        )
        logger.info(f"[Storage] Uploaded {len(data)} bytes to s3://{self.bucket}/{key}")
        return self.public_url_for(logical_id)

    def delete(self, logical_id: str) -> bool:
        """Delete an object. Returns False if it does not exist or the call fails."""
        key = self.object_key(logical_id)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                logger.info(f"[Storage] Nothing to delete at {key}")
            else:
                logger.error(f"[Storage] Failed to look up {key}: {e}")
            return False

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"[Storage] Deleted {key}")
            return True
        except ClientError as e:
            logger.error(f"[Storage] Failed to delete {key}: {e}")
            return False
