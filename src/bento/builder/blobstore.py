"""Public mirror of box artifacts in an S3-compatible bucket."""

from pathlib import Path
from typing import Any

from pyvider.telemetry import logger

from .config import BentoConfig
from .exceptions import TransportError
from .models import VMWARE_PROVIDER


def mirror_key(provider: str, box: str) -> str:
    mirror_provider = "vmware" if provider == VMWARE_PROVIDER else provider
    return f"vagrant/{mirror_provider}/opscode_{box}_chef-provisionerless.box"


class S3BlobStore:
    def __init__(self, config: BentoConfig, client: Any | None = None) -> None:
        self.bucket = config.s3_bucket
        self.endpoint = config.s3_endpoint.rstrip("/")
        if client is None:
            import boto3

            client = boto3.client("s3", endpoint_url=self.endpoint)
        self._client = client

    def public_url(self, key: str) -> str:
        return f"{self.endpoint}/{self.bucket}/{key}"

    def upload(self, key: str, artifact: Path) -> str:
        from boto3.exceptions import S3UploadFailedError
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client.upload_file(
                str(artifact), self.bucket, key, ExtraArgs={"ACL": "public-read"}
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            raise TransportError(
                f"Upload of '{artifact}' to s3://{self.bucket}/{key} failed: {e}"
            ) from e
        url = self.public_url(key)
        logger.info("Mirrored artifact", url=url)
        return url
