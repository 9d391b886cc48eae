# src/node_eip/directories/instance_directory.py

import asyncio
import logging
from typing import List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import config
from ..core.exceptions import CloudApiError, NoEipOnInstance, NoFreeAddresses
from ..models.eip import ElasticIP, NetworkInterface, TagFilter
from .base import InstanceDirectory
from .metadata import InstanceMetadataClient

logger = logging.getLogger(__name__)


def create_ec2_client(region: str = None):
    """
    Builds a boto3 EC2 client. Explicit credentials from the config are used
    when present, otherwise botocore's default provider chain applies.
    """
    kwargs = {}
    region = region or config.AWS_REGION
    if region:
        kwargs["region_name"] = region
    if config.AWS_ACCESS_KEY_ID and config.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = config.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = config.AWS_SECRET_ACCESS_KEY
    return boto3.client("ec2", **kwargs)


class Ec2InstanceDirectory(InstanceDirectory):
    """
    Instance Directory backed by the EC2 API and the instance metadata service.

    boto3 is blocking, so every EC2 call runs in a worker thread; a cycle
    still awaits each call in sequence.
    """

    def __init__(self, ec2_client=None, metadata: Optional[InstanceMetadataClient] = None):
        self._ec2 = ec2_client
        self.metadata = metadata or InstanceMetadataClient()
        self._instance_id: Optional[str] = None
        self._primary_interface: Optional[NetworkInterface] = None

    def _ensure_client(self):
        if self._ec2 is None:
            self._ec2 = create_ec2_client()
        return self._ec2

    async def _call(self, operation: str, **kwargs) -> dict:
        method = getattr(self._ensure_client(), operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error("EC2 %s failed: %s", operation, e)
            raise CloudApiError(f"{operation} failed: {e}") from e

    async def get_instance_id(self) -> str:
        if self._instance_id is None:
            self._instance_id = await self.metadata.get_instance_id()
            logger.info('instance id: "%s"', self._instance_id)
        return self._instance_id

    async def get_instance_eip(self) -> ElasticIP:
        instance_id = await self.get_instance_id()
        result = await self._call(
            "describe_addresses",
            Filters=[{"Name": "instance-id", "Values": [instance_id]}],
        )
        addresses = result.get("Addresses", [])
        if not addresses:
            raise NoEipOnInstance(f"instance '{instance_id}' has no eip")
        eip = ElasticIP.from_aws(addresses[0])
        logger.debug("instance '%s' has eip %s (%s)", instance_id, eip.public_ip, eip.allocation_id)
        return eip

    async def get_public_ip(self) -> str:
        return await self.metadata.get_public_ipv4()

    async def get_primary_network_interface(self) -> NetworkInterface:
        if self._primary_interface is not None:
            return self._primary_interface

        instance_id = await self.get_instance_id()
        result = await self._call(
            "describe_network_interfaces",
            Filters=[{"Name": "attachment.instance-id", "Values": [instance_id]}],
        )
        interfaces = [NetworkInterface.from_aws(i) for i in result.get("NetworkInterfaces", [])]
        if not interfaces:
            raise CloudApiError(f"instance '{instance_id}' has no network interfaces")

        primary = next((i for i in interfaces if i.public_ip), None)
        if primary is None:
            # Nothing carries a public address yet: fall back to the boot interface
            primary = next((i for i in interfaces if i.device_index == 0), interfaces[0])

        self._primary_interface = primary
        logger.info("primary network interface: %s (%s)", primary.id, primary.private_ip)
        return primary

    async def list_free_eips(self, tag_filter: TagFilter) -> List[ElasticIP]:
        result = await self._call("describe_addresses", Filters=[tag_filter.to_aws_filter()])
        eips = [ElasticIP.from_aws(a) for a in result.get("Addresses", [])]
        free = [eip for eip in eips if eip.is_free]
        logger.debug(
            "tag:%s=%s matched %d addresses, %d free", tag_filter.name, tag_filter.value, len(eips), len(free)
        )
        if not free:
            raise NoFreeAddresses(f"no free eips for tag '{tag_filter.name}'='{tag_filter.value}'")
        return free

    async def associate_eip(self, eip: ElasticIP, interface: NetworkInterface) -> None:
        logger.info(
            "associating %s (%s) with %s (%s)", eip.public_ip, eip.allocation_id, interface.id, interface.private_ip
        )
        await self._call(
            "associate_address",
            AllocationId=eip.allocation_id,
            NetworkInterfaceId=interface.id,
            PrivateIpAddress=interface.private_ip,
            AllowReassociation=False,
        )

    async def close(self):
        await self.metadata.close()
