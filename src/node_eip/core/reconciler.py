# src/node_eip/core/reconciler.py
"""
The reconciliation loop.

Each cycle observes the node labels, the instance's address association and
the publicly reported address, then moves them toward the policy:

    enabled? -> readiness -> taint adjustment -> status label -> assignment

Taint adjustment always works from the readiness observed before any
assignment made in the same cycle, since a fresh association needs time to
propagate. Everything is re-read every cycle; only the consecutive not-ready
count lives in memory and it starts from zero on every process start.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..directories.base import InstanceDirectory, NodeDirectory
from ..models.eip import ElasticIP
from ..models.node import NodeState, Taint, TaintEffect
from .allocator import EipAllocator
from .config import config
from .exceptions import NodeEipError, NoEipOnInstance
from .policy import LabelPolicy
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Readiness:
    ready: bool
    eip: Optional[ElasticIP] = None
    public_ip: Optional[str] = None


def default_taint() -> Taint:
    return Taint(key=config.TAINT_KEY, value=config.TAINT_VALUE, effect=TaintEffect(config.TAINT_EFFECT))


class Reconciler:
    """
    Keeps the node's Elastic IP consistent with its label policy and gates
    workload admission with a taint while the address is not serving.
    """

    def __init__(
        self,
        nodes: NodeDirectory,
        instances: InstanceDirectory,
        policy: Optional[LabelPolicy] = None,
        allocator: Optional[EipAllocator] = None,
        taint: Optional[Taint] = None,
        not_ready_threshold: Optional[int] = None,
        interval: Union[int, float, str, None] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.nodes = nodes
        self.instances = instances
        self.policy = policy or LabelPolicy(config.LABEL_DOMAIN)
        self.allocator = allocator or EipAllocator(nodes, instances, self.policy)
        self.taint = taint or default_taint()
        self.not_ready_threshold = config.NOT_READY_THRESHOLD if not_ready_threshold is None else not_ready_threshold
        self.interval = config.RECONCILE_INTERVAL if interval is None else interval
        self.scheduler = scheduler or Scheduler()
        self.not_ready_count = 0

    async def run(self) -> None:
        """
        Runs cycles until the node is found disabled or stop() is called.
        Cycle failures are logged by the scheduler and retried next cycle.
        """
        logger.info("reconciler: starting")
        await self.scheduler.run_periodically(self.reconcile, self.interval)
        logger.info("reconciler: stopped")

    def stop(self) -> None:
        self.scheduler.stop()

    async def reconcile(self) -> bool:
        """Runs one cycle. Returns False once the node is disabled."""
        logger.debug("reconciler: checking if service is enabled for node")
        node = await self.nodes.get_node()
        if not self.policy.is_enabled(node.labels):
            logger.error(
                "reconciler: service is not enabled for this node. required label: '%s'='true'",
                self.policy.enabled_key,
            )
            return False

        readiness = await self.evaluate_readiness()
        self._track(readiness.ready)
        await self.adjust_taint(node, readiness.ready)
        await self.sync_public_ip_label(node, readiness)

        # Allocation is only attempted when this cycle saw no address on the instance
        if readiness.eip is None:
            logger.info("reconciler: instance has no eip, assigning one")
            await self.allocator.assign()
        else:
            logger.debug("reconciler: instance already has eip %s", readiness.eip.public_ip)
        return True

    async def is_enabled(self) -> bool:
        labels = await self.nodes.get_labels()
        return self.policy.is_enabled(labels)

    async def evaluate_readiness(self) -> Readiness:
        """
        The node is ready when the instance's associated address is the one
        the metadata service reports as its public address.
        """
        try:
            eip = await self.instances.get_instance_eip()
        except NoEipOnInstance:
            logger.debug("reconciler: instance has no eip, not ready")
            return Readiness(ready=False)

        public_ip = await self.instances.get_public_ip()
        ready = public_ip == eip.public_ip
        if not ready:
            logger.warning(
                "reconciler: eip %s is associated but instance reports public ip %s",
                eip.public_ip,
                public_ip,
            )
        return Readiness(ready=ready, eip=eip, public_ip=public_ip)

    async def is_ready(self) -> bool:
        return (await self.evaluate_readiness()).ready

    def _track(self, ready: bool) -> None:
        if ready:
            if self.not_ready_count:
                logger.info("reconciler: node ready again after %d not-ready cycles", self.not_ready_count)
            self.not_ready_count = 0
        else:
            self.not_ready_count += 1
            logger.debug(
                "reconciler: node not ready (%d/%d)",
                self.not_ready_count,
                self.not_ready_threshold,
            )

    async def adjust_taint(self, node: NodeState, ready: bool) -> None:
        tainted = node.has_taint(self.taint)
        if ready and tainted:
            logger.info("reconciler: removing node taint '%s'", self.taint)
            await self.nodes.remove_taint(self.taint)
        elif not ready and not tainted and self.not_ready_count > self.not_ready_threshold:
            logger.info(
                "reconciler: node not ready for %d cycles, setting node taint '%s'",
                self.not_ready_count,
                self.taint,
            )
            await self.nodes.add_taint(self.taint)

    async def sync_public_ip_label(self, node: NodeState, readiness: Readiness) -> None:
        # Informational only; assignment never looks at this label
        key = self.policy.public_ip_key
        current = node.labels.get(key)
        try:
            if readiness.ready and current != readiness.eip.public_ip:
                await self.nodes.add_label(key, readiness.eip.public_ip)
            elif readiness.eip is None and current is not None:
                await self.nodes.remove_label(key)
        except NodeEipError as e:
            logger.warning("reconciler: could not update label '%s', retrying next cycle: %s", key, e)
