# src/node_eip/directories/base.py
"""
This module defines the narrow interfaces the reconciler consumes for the
cluster node and the cloud instance. Keeping them abstract lets the
reconciler run against the real adapters or against in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from ..core.exceptions import NoEipOnInstance
from ..models.eip import ElasticIP, NetworkInterface, TagFilter
from ..models.node import NodeState, Taint


class NodeDirectory(ABC):
    """
    Reads and mutates the governed node's labels and taints.

    Every operation raises NodeUnavailable when the node record cannot be
    retrieved or mutated.
    """

    @abstractmethod
    async def get_node(self) -> NodeState:
        pass

    async def get_labels(self) -> Dict[str, str]:
        node = await self.get_node()
        return dict(node.labels)

    async def has_taint(self, taint: Taint) -> bool:
        node = await self.get_node()
        return node.has_taint(taint)

    @abstractmethod
    async def add_label(self, key: str, value: str) -> None:
        """Upserts a label, overwriting an existing value."""
        pass

    @abstractmethod
    async def remove_label(self, key: str) -> None:
        """Deletes a label; a no-op when it is absent."""
        pass

    @abstractmethod
    async def add_taint(self, taint: Taint) -> None:
        """Adds a taint; a no-op when it is already present."""
        pass

    @abstractmethod
    async def remove_taint(self, taint: Taint) -> None:
        """Removes a taint; a no-op when it is absent."""
        pass

    async def close(self):
        pass


class InstanceDirectory(ABC):
    """
    Queries instance identity and Elastic IP state from the cloud provider
    and performs address association.
    """

    @abstractmethod
    async def get_instance_id(self) -> str:
        pass

    @abstractmethod
    async def get_instance_eip(self) -> ElasticIP:
        """
        Returns the address currently associated with the instance.

        Raises:
            NoEipOnInstance: If no address is associated.
        """
        pass

    async def has_eip(self) -> bool:
        try:
            await self.get_instance_eip()
        except NoEipOnInstance:
            return False
        return True

    @abstractmethod
    async def get_public_ip(self) -> str:
        """Public address the metadata service reports for the instance."""
        pass

    @abstractmethod
    async def get_primary_network_interface(self) -> NetworkInterface:
        pass

    @abstractmethod
    async def list_free_eips(self, tag_filter: TagFilter) -> List[ElasticIP]:
        """
        Returns unassociated addresses matching the tag, in provider order.

        Raises:
            NoFreeAddresses: If none are free.
        """
        pass

    @abstractmethod
    async def associate_eip(self, eip: ElasticIP, interface: NetworkInterface) -> None:
        """Binds the address to the interface; must never steal an existing association."""
        pass

    async def close(self):
        pass
