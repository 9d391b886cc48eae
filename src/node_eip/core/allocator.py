# src/node_eip/core/allocator.py

import logging

from ..directories.base import InstanceDirectory, NodeDirectory
from .policy import LabelPolicy

logger = logging.getLogger(__name__)


class EipAllocator:
    """
    Binds a free address from the tag-selected pool to the instance's
    primary network interface.
    """

    def __init__(self, nodes: NodeDirectory, instances: InstanceDirectory, policy: LabelPolicy):
        self.nodes = nodes
        self.instances = instances
        self.policy = policy

    async def assign(self) -> None:
        """
        Associates the first free address of the pool with the instance.

        The pool is the set of addresses tagged as named by the node's
        tag-name/tag-value labels. The first free address in the order the
        provider returns them wins; there is no further ranking.

        Raises:
            InvalidPolicy: If a tag label is missing or blank. No cloud call is made.
            NoFreeAddresses: If the pool has no unassociated address.
            CloudApiError: If the provider rejects the association, e.g. because
                another holder claimed the address first.
        """
        logger.debug("assign: getting node labels")
        labels = await self.nodes.get_labels()
        tag_filter = self.policy.tag_filter(labels)
        logger.debug("assign: tag '%s'='%s'", tag_filter.name, tag_filter.value)

        logger.debug("assign: getting free eips")
        eips = await self.instances.list_free_eips(tag_filter)
        eip = eips[0]

        interface = await self.instances.get_primary_network_interface()
        logger.info("assign: assigning eip %s (%s) to interface %s", eip.public_ip, eip.allocation_id, interface.id)
        await self.instances.associate_eip(eip, interface)
