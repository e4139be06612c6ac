"""CloudFront cache invalidation"""
import logging
import time
import uuid
from typing import Optional, Protocol, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.core.exceptions import RemoteStoreError

logger = logging.getLogger(__name__)


class CdnInvalidator(Protocol):
    def invalidate(self, paths: Sequence[str]) -> Optional[str]: ...


def key_to_path(key: str) -> str:
    return key if key.startswith("/") else f"/{key}"


class CloudFrontInvalidator:
    """Invalidates cached objects on one CloudFront distribution"""

    def __init__(self, distribution_id: str, client=None):
        self.distribution_id = distribution_id
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.distribution_id)

    @property
    def client(self):
        if self._client is None:
            kwargs = {}
            if settings.AWS_ACCESS_KEY_ID:
                kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
                kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
            self._client = boto3.client("cloudfront", **kwargs)
        return self._client

    def invalidate(self, paths: Sequence[str]) -> Optional[str]:
        """
        Create one invalidation for the given paths

        Returns:
            The invalidation id, or None when no distribution is configured
        """
        if not self.enabled:
            logger.warning("CloudFront distribution id not configured, skipping invalidation")
            return None

        items = [key_to_path(path) for path in paths]
        if not items:
            return None

        try:
            response = self.client.create_invalidation(
                DistributionId=self.distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(items), "Items": items},
                    "CallerReference": f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}",
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise RemoteStoreError("invalidate", str(e)) from e

        invalidation_id = response["Invalidation"]["Id"]
        logger.info(
            f"CloudFront invalidation created: distribution={self.distribution_id}, "
            f"id={invalidation_id}, paths={len(items)}"
        )
        return invalidation_id


_invalidator: Optional[CloudFrontInvalidator] = None


def get_cdn_invalidator() -> CloudFrontInvalidator:
    global _invalidator
    if _invalidator is None:
        _invalidator = CloudFrontInvalidator(settings.CLOUDFRONT_DISTRIBUTION_ID)
    return _invalidator
