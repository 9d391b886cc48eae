# tests/helpers.py
"""
In-memory directories and label builders shared by the test suite.
"""

from typing import Dict, List, Optional

from node_eip.core.exceptions import NoEipOnInstance, NoFreeAddresses, NodeUnavailable
from node_eip.directories.base import InstanceDirectory, NodeDirectory
from node_eip.models.eip import ElasticIP, NetworkInterface, TagFilter
from node_eip.models.node import NodeState, Taint

DOMAIN = "aws.node.eip"
TEST_NODE_NAME = "node-1234"
TEST_INSTANCE_ID = "i-123456789"


class FakeNodeDirectory(NodeDirectory):
    """
    In-memory node. Every mutation is recorded in `calls` and applied with
    the same idempotent semantics as the Kubernetes adapter.
    """

    def __init__(self, labels: Optional[Dict[str, str]] = None, taints: Optional[List[Taint]] = None):
        self.labels = dict(labels or {})
        self.taints = list(taints or [])
        self.calls = []
        self.unavailable = False

    def _check(self):
        if self.unavailable:
            raise NodeUnavailable(f'node "{TEST_NODE_NAME}" not found')

    async def get_node(self) -> NodeState:
        self._check()
        return NodeState(name=TEST_NODE_NAME, labels=dict(self.labels), taints=list(self.taints))

    async def add_label(self, key: str, value: str) -> None:
        self._check()
        self.calls.append(("add_label", key, value))
        self.labels[key] = value

    async def remove_label(self, key: str) -> None:
        self._check()
        self.calls.append(("remove_label", key))
        self.labels.pop(key, None)

    async def add_taint(self, taint: Taint) -> None:
        self._check()
        self.calls.append(("add_taint", taint))
        if taint not in self.taints:
            self.taints.append(taint)

    async def remove_taint(self, taint: Taint) -> None:
        self._check()
        self.calls.append(("remove_taint", taint))
        self.taints = [t for t in self.taints if t != taint]

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeInstanceDirectory(InstanceDirectory):
    """
    In-memory instance and address pool. `calls` records every method that
    would reach the cloud provider. An association does not change the
    reported public IP unless `propagate` is set.
    """

    def __init__(
        self,
        eip: Optional[ElasticIP] = None,
        public_ip: str = "",
        pool: Optional[List[ElasticIP]] = None,
        propagate: bool = False,
    ):
        self.eip = eip
        self.public_ip = public_ip
        self.pool = list(pool or [])
        self.propagate = propagate
        self.interface = NetworkInterface(id="eni-1", private_ip="10.0.0.10", public_ip=None, device_index=0)
        self.calls = []

    async def get_instance_id(self) -> str:
        return TEST_INSTANCE_ID

    async def get_instance_eip(self) -> ElasticIP:
        self.calls.append("get_instance_eip")
        if self.eip is None:
            raise NoEipOnInstance(f"instance '{TEST_INSTANCE_ID}' has no eip")
        return self.eip

    async def get_public_ip(self) -> str:
        self.calls.append("get_public_ip")
        return self.public_ip

    async def get_primary_network_interface(self) -> NetworkInterface:
        self.calls.append("get_primary_network_interface")
        return self.interface

    async def list_free_eips(self, tag_filter: TagFilter) -> List[ElasticIP]:
        self.calls.append(("list_free_eips", tag_filter.name, tag_filter.value))
        free = [eip for eip in self.pool if eip.is_free]
        if not free:
            raise NoFreeAddresses("no free eips")
        return free

    async def associate_eip(self, eip: ElasticIP, interface: NetworkInterface) -> None:
        self.calls.append(("associate_eip", eip.allocation_id, interface.id))
        self.eip = eip.model_copy(update={"association_id": f"eipassoc-{eip.allocation_id}"})
        self.pool = [self.eip if p.allocation_id == eip.allocation_id else p for p in self.pool]
        if self.propagate:
            self.public_ip = eip.public_ip

    def cloud_calls(self, name: str) -> list:
        return [c for c in self.calls if isinstance(c, tuple) and c[0] == name]


def enabled_labels(**extra) -> Dict[str, str]:
    labels = {
        f"{DOMAIN}/enabled": "true",
        f"{DOMAIN}/tag-name": "Name",
        f"{DOMAIN}/tag-value": "svc-1",
    }
    labels.update(extra)
    return labels
