# src/node_eip/directories/metadata.py

import logging
from typing import Optional

import httpx

from ..core.config import config
from ..core.exceptions import MetadataUnavailable

logger = logging.getLogger(__name__)


class InstanceMetadataClient:
    """
    Reads instance identity from the link-local metadata service with plain
    GET requests. Any failure, transport errors included, surfaces as
    MetadataUnavailable.
    """

    def __init__(self, base_url: str = None, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = (base_url or config.METADATA_URL).rstrip("/")
        self._client = http_client

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # No retries: a failed read aborts the cycle and the next cycle tries again
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.DEFAULT_TIMEOUT_READ, connect=config.DEFAULT_TIMEOUT_CONNECT),
                headers={"User-Agent": config.USER_AGENT},
            )
        return self._client

    async def get(self, path: str) -> str:
        url = f"{self.base_url}/{path}"
        logger.debug('getting "%s" from url "%s"', path, url)
        try:
            response = await self._ensure_client().get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("metadata request for '%s' failed: %s", path, e)
            raise MetadataUnavailable(f"failed to get {path}") from e
        value = response.text.strip()
        if not value:
            raise MetadataUnavailable(f"failed to get {path}: empty response")
        logger.debug('%s: "%s"', path, value)
        return value

    async def get_instance_id(self) -> str:
        return await self.get("instance-id")

    async def get_public_ipv4(self) -> str:
        return await self.get("public-ipv4")

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
