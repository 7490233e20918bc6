"""
Image reference resolution.

Listing and agent images are stored as object keys in a private
S3-compatible bucket. Before they reach a browser each key is turned
into a short-lived presigned GET URL. References that are already
displayable (absolute URLs or site-relative paths) pass through.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from homefinder.config import Settings
from homefinder.errors import ImageResolutionError

logger = logging.getLogger(__name__)

DISPLAYABLE_PREFIXES = ("http://", "https://", "/")


class ImageResolver(Protocol):
    """Anything that can turn a stored image reference into a URL."""

    async def resolve(self, reference: Optional[str]) -> Optional[str]:
        ...


def is_displayable(reference: str) -> bool:
    """Whether a reference can be handed to a browser unchanged."""
    return reference.startswith(DISPLAYABLE_PREFIXES)


class S3ImageResolver:
    """Presigns object keys against an S3-compatible bucket."""

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the resolver.

        Args:
            settings: Application settings containing storage configuration.
        """
        self.bucket = settings.storage_bucket
        self.expires_in = settings.image_url_ttl_seconds
        self.client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url,
            region_name=settings.storage_region,
            aws_access_key_id=settings.storage_key_id,
            aws_secret_access_key=settings.storage_application_key,
            config=Config(signature_version="s3v4"),
        )

    async def resolve(self, reference: Optional[str]) -> Optional[str]:
        """
        Resolve an image reference to a displayable URL.

        Args:
            reference: Object key, absolute URL, or None.

        Returns:
            The URL to display, or None when there is no image.

        Raises:
            ImageResolutionError: If the key cannot be presigned.
        """
        if not reference:
            return None
        if is_displayable(reference):
            return reference

        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": reference},
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to presign image %s: %s", reference, e)
            raise ImageResolutionError(f"Could not sign image reference {reference!r}") from e


async def resolve_all(
    resolver: ImageResolver,
    references: Iterable[Optional[str]],
) -> List[Optional[str]]:
    """
    Resolve several references concurrently, preserving their order.

    All resolutions run at once; the first failure propagates and the
    whole batch fails.
    """
    return list(await asyncio.gather(*(resolver.resolve(ref) for ref in references)))


# Dependency injection helper for FastAPI
_image_resolver: Optional[S3ImageResolver] = None


def get_image_resolver(settings: Settings) -> S3ImageResolver:
    """
    Get or create the image resolver singleton.

    A single boto3 client is shared by all requests; boto3 clients are
    safe to use from worker threads.
    """
    global _image_resolver
    if _image_resolver is None:
        _image_resolver = S3ImageResolver(settings)
    return _image_resolver
